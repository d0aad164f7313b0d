"""Prompt-completion backends, one per LLM vendor.

Every backend accepts a prompt and returns raw text. Vendor differences are
limited to how the DSPy language model is configured (model prefix,
credentials, endpoint), so callers only ever see ``CompletionBackend``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping, Optional

try:  # pragma: no cover - optional dependency
    import dspy  # type: ignore
except ImportError:  # pragma: no cover - executed when DSPy absent
    dspy = None  # type: ignore[assignment]

from docsort.config.exceptions import ConfigError
from docsort.config.models import LLMSettings

from .models import Completion

LOGGER = logging.getLogger(__name__)


class BackendUnavailableError(RuntimeError):
    """Raised by a backend that cannot serve requests."""


class CompletionBackend(ABC):
    """Accept a prompt and return completion text."""

    name: ClassVar[str]

    @abstractmethod
    def complete(self, prompt: str) -> Completion:
        """Return the backend's completion for ``prompt``.

        Implementations may raise; ``ModelGateway`` converts failures into
        ``Completion.error``.
        """


class DisabledBackend(CompletionBackend):
    """Backend used when model calls are switched off."""

    name = "none"

    def complete(self, prompt: str) -> Completion:
        raise BackendUnavailableError("Model calls are disabled (llm.provider = none).")


class DSPyBackend(CompletionBackend):
    """Shared plumbing for vendors reached through ``dspy.LM``."""

    model_prefix: ClassVar[str] = ""
    api_key_env: ClassVar[tuple[str, ...]] = ()
    requires_api_key: ClassVar[bool] = True

    def __init__(self, settings: LLMSettings, env: Mapping[str, str] | None = None) -> None:
        if dspy is None:
            raise ConfigError(
                f"The {self.name} provider requires DSPy. Install `dspy` or set llm.provider to 'none'."
            )
        self._settings = settings
        self._env = env or {}
        kwargs = self._lm_kwargs()
        try:
            self._lm = dspy.LM(**kwargs)
        except Exception as exc:
            raise ConfigError(
                f"Unable to configure the {self.name} language model: {exc}"
            ) from exc

    @property
    def model_name(self) -> str:
        """Return the fully qualified model identifier handed to DSPy."""
        model = self._settings.model.strip()
        if not model:
            raise ConfigError("llm.model must not be empty.")
        if "/" in model:
            return model
        return f"{self.model_prefix}/{model}"

    def complete(self, prompt: str) -> Completion:
        outputs = self._lm(prompt)
        text = _first_output(outputs)
        return Completion(text=text, tokens_used=self._last_usage())

    def _api_key(self) -> Optional[str]:
        if self._settings.api_key:
            return self._settings.api_key
        for variable in self.api_key_env:
            value = self._env.get(variable)
            if value:
                return value
        return None

    def _lm_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model_name,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }
        api_key = self._api_key()
        if api_key:
            kwargs["api_key"] = api_key
        elif self.requires_api_key:
            hint = " or ".join(self.api_key_env) if self.api_key_env else "llm.api_key"
            raise ConfigError(
                f"An API key is required for the {self.name} provider. "
                f"Set llm.api_key or {hint}."
            )
        if self._settings.api_base_url:
            kwargs["api_base"] = self._settings.api_base_url
        return kwargs

    def _last_usage(self) -> int:
        history = getattr(self._lm, "history", None) or []
        if not history:
            return 0
        entry = history[-1]
        usage = entry.get("usage") if isinstance(entry, dict) else None
        if not usage:
            return 0
        total = usage.get("total_tokens") if isinstance(usage, dict) else None
        try:
            return int(total or 0)
        except (TypeError, ValueError):
            return 0


class GeminiBackend(DSPyBackend):
    """Google Gemini via the generative-language API."""

    name = "gemini"
    model_prefix = "gemini"
    api_key_env = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


class OpenAIBackend(DSPyBackend):
    """OpenAI chat completions (or any compatible endpoint)."""

    name = "openai"
    model_prefix = "openai"
    api_key_env = ("OPENAI_API_KEY",)


class AzureOpenAIBackend(DSPyBackend):
    """Azure OpenAI deployments; ``llm.model`` names the deployment."""

    name = "azure"
    model_prefix = "azure"
    api_key_env = ("AZURE_OPENAI_API_KEY",)

    def _lm_kwargs(self) -> dict[str, Any]:
        kwargs = super()._lm_kwargs()
        endpoint = self._settings.api_base_url or self._env.get("AZURE_OPENAI_ENDPOINT")
        if not endpoint:
            raise ConfigError(
                "The azure provider requires an endpoint. "
                "Set llm.api_base_url or AZURE_OPENAI_ENDPOINT."
            )
        kwargs["api_base"] = endpoint
        if self._settings.api_version:
            kwargs["api_version"] = self._settings.api_version
        return kwargs


class OllamaBackend(DSPyBackend):
    """Local models served by Ollama."""

    name = "ollama"
    model_prefix = "ollama_chat"
    requires_api_key = False
    default_base_url = "http://localhost:11434"

    def _lm_kwargs(self) -> dict[str, Any]:
        kwargs = super()._lm_kwargs()
        kwargs.setdefault("api_base", self.default_base_url)
        kwargs.setdefault("api_key", "")
        return kwargs


BACKENDS: dict[str, type[CompletionBackend]] = {
    backend.name: backend
    for backend in (
        GeminiBackend,
        OpenAIBackend,
        AzureOpenAIBackend,
        OllamaBackend,
        DisabledBackend,
    )
}


def build_backend(settings: LLMSettings, env: Mapping[str, str] | None = None) -> CompletionBackend:
    """Instantiate the backend selected by ``settings.provider``.

    Args:
        settings: LLM configuration section.
        env: Environment used for credential fallbacks.

    Returns:
        CompletionBackend: Ready-to-use backend.

    Raises:
        ConfigError: If the provider is unknown or misconfigured.
    """

    backend_cls = BACKENDS.get(settings.provider)
    if backend_cls is None:
        raise ConfigError(f"Unknown LLM provider '{settings.provider}'.")
    if backend_cls is DisabledBackend:
        return DisabledBackend()
    LOGGER.debug("Configuring %s backend for model %s", settings.provider, settings.model)
    return backend_cls(settings, env)  # type: ignore[call-arg]


def _first_output(outputs: Any) -> str:
    if isinstance(outputs, str):
        return outputs
    if not outputs:
        return ""
    first = outputs[0]
    if isinstance(first, dict):
        first = first.get("text", "")
    return str(first or "")


__all__ = [
    "AzureOpenAIBackend",
    "BACKENDS",
    "BackendUnavailableError",
    "CompletionBackend",
    "DSPyBackend",
    "DisabledBackend",
    "GeminiBackend",
    "OllamaBackend",
    "OpenAIBackend",
    "build_backend",
]
