"""Data models exchanged with language-model backends."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class Completion(BaseModel):
    """Raw completion text plus usage accounting.

    Attributes:
        text: Completion text exactly as returned by the backend.
        tokens_used: Total tokens reported for the request, when known.
        error: Failure description when the request did not succeed.
    """

    text: str = ""
    tokens_used: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Return True when the request succeeded with non-blank text."""
        return self.error is None and bool(self.text.strip())


__all__ = ["Completion"]
