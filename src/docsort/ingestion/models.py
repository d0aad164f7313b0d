"""Ingestion data models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class PendingFile(BaseModel):
    """A file discovered in the source tree, awaiting organization.

    Attributes:
        path: Absolute path of the file.
        size_bytes: Size reported by ``stat``.
        modified_at: Last modification time in UTC.
        supported: Whether the extension is configured for organization.
    """

    path: Path
    size_bytes: int
    modified_at: Optional[datetime] = None
    supported: bool = True

    @property
    def extension(self) -> str:
        """Return the lower-cased extension including the leading dot."""
        return self.path.suffix.lower()


__all__ = ["PendingFile"]
