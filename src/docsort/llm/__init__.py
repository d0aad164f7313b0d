"""Language-model access for classification and naming suggestions."""

from .backends import (
    BACKENDS,
    AzureOpenAIBackend,
    BackendUnavailableError,
    CompletionBackend,
    DisabledBackend,
    GeminiBackend,
    OllamaBackend,
    OpenAIBackend,
    build_backend,
)
from .gateway import ModelGateway
from .models import Completion

__all__ = [
    "BACKENDS",
    "AzureOpenAIBackend",
    "BackendUnavailableError",
    "Completion",
    "CompletionBackend",
    "DisabledBackend",
    "GeminiBackend",
    "ModelGateway",
    "OllamaBackend",
    "OpenAIBackend",
    "build_backend",
]
