"""Organization data models."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilenameDecision(BaseModel):
    """Suggested and finally chosen base name (no extension).

    Attributes:
        suggested: Sanitized model suggestion, if one was usable.
        chosen: Base name that will be used on disk.
    """

    suggested: Optional[str] = None
    chosen: str


class FolderDecision(BaseModel):
    """Suggested and finally chosen relative folder path.

    Attributes:
        suggested: Sanitized model suggestion, if one was usable.
        chosen: Relative path below the destination root.
    """

    suggested: Optional[str] = None
    chosen: str


class FileProcessingRecord(BaseModel):
    """Sidecar record describing how a single file was organized.

    Attributes:
        original_path: Absolute path before the move.
        original_filename: Filename before the move.
        processed_at: UTC timestamp of processing.
        category: Detected category key.
        target_folder: Relative folder the file was moved into.
        suggested_filename: Model-suggested base name, if any.
        final_filename: Filename actually used on disk.
        text_preview: Leading slice of the extracted text.
    """

    model_config = ConfigDict(frozen=True)

    original_path: str
    original_filename: str
    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    category: str
    target_folder: str
    suggested_filename: Optional[str] = None
    final_filename: str
    text_preview: str = ""


class FileOutcome(BaseModel):
    """Per-file result of an organize run.

    Attributes:
        source: Original file path.
        destination: Final path when the file was moved.
        category: Category key the file was classified into.
        status: ``moved`` or ``failed``.
        message: Error or informational note.
        metadata_path: Sidecar location when metadata was written.
    """

    source: Path
    destination: Optional[Path] = None
    category: Optional[str] = None
    status: Literal["moved", "failed"]
    message: Optional[str] = None
    metadata_path: Optional[Path] = None


class OrganizeResult(BaseModel):
    """Statistics and progress trail of one organize run.

    Attributes:
        processed: Files with a supported extension that processing started on.
        moved: Files successfully moved into the destination tree.
        tokens_used: Tokens reported by the language-model backend.
        cancelled: Whether the run stopped because cancellation was requested.
        outcomes: Per-file results in processing order.
        messages: Progress messages in emission order.
    """

    processed: int = 0
    moved: int = 0
    tokens_used: int = 0
    cancelled: bool = False
    outcomes: List[FileOutcome] = Field(default_factory=list)
    messages: List[str] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        """Return the number of files that could not be moved."""
        return sum(1 for outcome in self.outcomes if outcome.status == "failed")


__all__ = [
    "FileOutcome",
    "FileProcessingRecord",
    "FilenameDecision",
    "FolderDecision",
    "OrganizeResult",
]
