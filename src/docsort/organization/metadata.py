"""JSON sidecar records for organized files."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import FileProcessingRecord

LOGGER = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".metadata.json"


class MetadataWriteError(Exception):
    """Raised when a sidecar record cannot be written."""


def sidecar_path(path: Path) -> Path:
    """Return the sidecar location for an organized file."""
    return path.with_name(f"{path.name}{SIDECAR_SUFFIX}")


class MetadataWriter:
    """Write one immutable sidecar per moved file."""

    def write(self, record: FileProcessingRecord, destination: Path) -> Path:
        """Serialize ``record`` next to ``destination``.

        Existing sidecars are never overwritten.

        Args:
            record: Processing record to persist.
            destination: Final path of the moved file.

        Returns:
            Path: Location of the written sidecar.

        Raises:
            MetadataWriteError: If the sidecar exists or cannot be written.
        """
        target = sidecar_path(destination)
        try:
            with target.open("x", encoding="utf-8") as handle:
                handle.write(record.model_dump_json(indent=2))
        except FileExistsError as exc:
            raise MetadataWriteError(f"Metadata file already exists: {target}") from exc
        except OSError as exc:
            raise MetadataWriteError(f"Unable to write metadata {target}: {exc}") from exc
        LOGGER.debug("Wrote metadata sidecar %s", target)
        return target


__all__ = ["MetadataWriteError", "MetadataWriter", "SIDECAR_SUFFIX", "sidecar_path"]
