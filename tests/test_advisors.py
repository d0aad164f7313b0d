"""Tests for filename and folder suggestion advisors."""

from __future__ import annotations

import pytest

from docsort.classification import CategoryMap
from docsort.llm import ModelGateway
from docsort.organization import confirmation
from docsort.organization.advisors import FilenameAdvisor, FolderPathAdvisor
from docsort.organization.cancellation import CancellationToken, OrganizeCancelled
from docsort.organization.confirmation import accept_suggestion, prompt_folder_choice
from docsort.organization.sanitize import DEFAULT_PATH_LABEL

from .conftest import ScriptedBackend

TEXT = "Factuur KPN B.V. maart 2024, factuurnummer 778812"
CATEGORIES = CategoryMap(
    {"Facturen": "1. Financiën/1.03. Facturen", "Werk": "4. Werk"},
    "Overig",
)


def _filename_advisor(*replies) -> tuple[FilenameAdvisor, ScriptedBackend]:
    backend = ScriptedBackend(replies)
    return FilenameAdvisor(ModelGateway(backend), max_prompt_chars=200), backend


def _folder_advisor(*replies, max_depth: int = 4) -> tuple[FolderPathAdvisor, ScriptedBackend]:
    backend = ScriptedBackend(replies)
    advisor = FolderPathAdvisor(ModelGateway(backend), CATEGORIES, max_depth=max_depth)
    return advisor, backend


def test_filename_suggestion_is_sanitized_and_loses_extension() -> None:
    advisor, backend = _filename_advisor('Filename: "Factuur KPN maart 2024.pdf"')

    suggestion = advisor.suggest(TEXT, "scan_0001.pdf", "Facturen")

    assert suggestion == "Factuur_KPN_maart_2024"
    assert "Facturen" in backend.prompts[0]
    assert "scan_0001.pdf" in backend.prompts[0]


@pytest.mark.parametrize("reply", ["", "???", ConnectionError("boom")])
def test_unusable_filename_suggestion_returns_none(reply) -> None:
    advisor, _ = _filename_advisor(reply)

    assert advisor.suggest(TEXT, "scan.pdf", "Facturen") is None


def test_filename_choose_without_confirmer_uses_suggestion() -> None:
    advisor, _ = _filename_advisor("KPN factuur maart")

    decision = advisor.choose(TEXT, "scan.pdf", "Facturen")

    assert decision.suggested == "KPN_factuur_maart"
    assert decision.chosen == "KPN_factuur_maart"


def test_filename_choose_falls_back_to_original_without_suggestion() -> None:
    advisor, backend = _filename_advisor("ignored")

    decision = advisor.choose("", "My Scan (1).pdf", "Facturen")

    assert backend.prompts == []
    assert decision.suggested is None
    assert decision.chosen == "My Scan (1)"


def test_filename_choose_respects_confirmer_answers() -> None:
    seen: list[tuple[str, str]] = []

    def _keep_original(original: str, suggested: str, progress) -> str:
        seen.append((original, suggested))
        progress("asked")
        return original

    messages: list[str] = []
    advisor, _ = _filename_advisor("KPN factuur")
    decision = advisor.choose(
        TEXT, "scan.pdf", "Facturen", confirm=_keep_original, progress=messages.append
    )

    assert seen == [("scan", "KPN_factuur")]
    assert messages == ["asked"]
    assert decision.chosen == "scan"


def test_filename_choose_sanitizes_custom_answer() -> None:
    advisor, _ = _filename_advisor("KPN factuur")

    decision = advisor.choose(
        TEXT, "scan.pdf", "Facturen", confirm=lambda original, suggested, progress: "Mijn: naam"
    )

    assert decision.chosen == "Mijn_naam"


def test_filename_choose_survives_failing_confirmer() -> None:
    def _broken(original: str, suggested: str, progress) -> str:
        raise RuntimeError("dialog closed")

    advisor, _ = _filename_advisor("KPN factuur")
    decision = advisor.choose(TEXT, "scan.pdf", "Facturen", confirm=_broken)

    assert decision.suggested == "KPN_factuur"
    assert decision.chosen == "scan"


def test_filename_choose_propagates_cancellation_from_confirmer() -> None:
    def _cancel(original: str, suggested: str, progress) -> str:
        raise OrganizeCancelled()

    advisor, _ = _filename_advisor("KPN factuur")

    with pytest.raises(OrganizeCancelled):
        advisor.choose(TEXT, "scan.pdf", "Facturen", confirm=_cancel)


def test_folder_suggestion_is_sanitized_and_depth_limited() -> None:
    advisor, backend = _folder_advisor("Path: Financiën/Facturen/KPN/2024/maart/week1", max_depth=3)

    suggestion = advisor.suggest(TEXT, "Facturen", "1. Financiën/1.03. Facturen")

    assert suggestion == "Financiën/Facturen/KPN"
    assert "1. Financiën/1.03. Facturen" in backend.prompts[0]
    assert "4. Werk" in backend.prompts[0]


@pytest.mark.parametrize("reply", ["none", "N/A", "Uncategorized", "/", "", TimeoutError("slow")])
def test_placeholder_folder_answers_are_discarded(reply) -> None:
    advisor, _ = _folder_advisor(reply)

    assert advisor.suggest(TEXT, "Facturen", "1. Financiën/1.03. Facturen") is None


def test_folder_choose_uses_predefined_path_without_suggestion() -> None:
    advisor, _ = _folder_advisor("unknown")

    decision = advisor.choose(TEXT, "Facturen", "1. Financiën/1.03. Facturen")

    assert decision.suggested is None
    assert decision.chosen == "1. Financiën/1.03. Facturen"


def test_folder_choose_accepts_suggestion_by_default() -> None:
    advisor, _ = _folder_advisor("Financiën/Facturen/KPN")

    decision = advisor.choose(
        TEXT, "Facturen", "1. Financiën/1.03. Facturen", confirm=accept_suggestion
    )

    assert decision.chosen == "Financiën/Facturen/KPN"


@pytest.mark.parametrize("answer", ["", "   ", "../..", "1. Financiën/1.03. Facturen"])
def test_folder_choose_prefers_predefined_path_on_ambiguous_answers(answer: str) -> None:
    advisor, _ = _folder_advisor("Financiën/Facturen/KPN")

    decision = advisor.choose(
        TEXT,
        "Facturen",
        "1. Financiën/1.03. Facturen",
        confirm=lambda predefined, suggested, progress: answer,
    )

    assert decision.chosen == "1. Financiën/1.03. Facturen"


def test_folder_choose_keeps_explicit_default_label() -> None:
    advisor, _ = _folder_advisor("Financiën/Facturen/KPN")

    decision = advisor.choose(
        TEXT,
        "Facturen",
        "1. Financiën/1.03. Facturen",
        confirm=lambda predefined, suggested, progress: DEFAULT_PATH_LABEL,
    )

    assert decision.chosen == DEFAULT_PATH_LABEL


def test_folder_choose_survives_failing_confirmer() -> None:
    def _broken(predefined: str, suggested: str, progress) -> str:
        raise OSError("no terminal")

    advisor, _ = _folder_advisor("Financiën/Facturen/KPN")
    decision = advisor.choose(TEXT, "Facturen", "1. Financiën/1.03. Facturen", confirm=_broken)

    assert decision.suggested == "Financiën/Facturen/KPN"
    assert decision.chosen == "1. Financiën/1.03. Facturen"


def test_advisors_observe_cancellation() -> None:
    token = CancellationToken()
    token.cancel()
    advisor, _ = _folder_advisor("Financiën")

    with pytest.raises(OrganizeCancelled):
        advisor.suggest(TEXT, "Facturen", "1. Financiën/1.03. Facturen", token)


def test_filename_choose_keeps_original_spelling_when_confirmer_declines() -> None:
    advisor, _ = _filename_advisor("KPN factuur")

    decision = advisor.choose(
        TEXT,
        "Factuur maart 2024.pdf",
        "Facturen",
        confirm=lambda original, suggested, progress: original,
    )

    assert decision.chosen == "Factuur maart 2024"


def test_folder_choose_with_terminal_prompt_never_keeps_unusable_path(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    answers = ["///", "n"]
    monkeypatch.setattr(confirmation.click, "prompt", lambda text, **_: answers.pop(0))
    advisor, _ = _folder_advisor("Financiën/Facturen/KPN")

    decision = advisor.choose(
        TEXT, "Facturen", "1. Financiën/1.03. Facturen", confirm=prompt_folder_choice
    )

    assert decision.chosen == "1. Financiën/1.03. Facturen"
    assert answers == []
