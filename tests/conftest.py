"""Shared fixtures and test doubles."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Union

import pytest

from docsort.config import DocsortConfig
from docsort.llm import Completion, CompletionBackend, ModelGateway

Reply = Union[str, Completion, Exception, Callable[[str], str]]


class ScriptedBackend(CompletionBackend):
    """Backend that replays canned replies and records every prompt."""

    name = "scripted"

    def __init__(self, replies: Iterable[Reply] = (), *, default: Reply = "") -> None:
        self.replies = list(replies)
        self.default = default
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> Completion:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        if isinstance(reply, Completion):
            return reply
        return Completion(text=reply, tokens_used=10)


def make_config(**sections: dict) -> DocsortConfig:
    """Return a config with the given sections merged over the defaults."""
    data = DocsortConfig().model_dump(mode="python")
    for name, values in sections.items():
        data[name] = {**data[name], **values}
    return DocsortConfig.model_validate(data)


@pytest.fixture
def scripted_backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def gateway(scripted_backend: ScriptedBackend) -> ModelGateway:
    return ModelGateway(scripted_backend, poll_interval=0.01)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "inbox"
    path.mkdir()
    return path


@pytest.fixture
def destination_dir(tmp_path: Path) -> Path:
    return tmp_path / "archive"
