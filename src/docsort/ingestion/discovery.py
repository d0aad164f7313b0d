"""File discovery utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from .models import PendingFile


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class DirectoryScanner:
    """Discover files within a directory tree subject to configuration filters."""

    def __init__(
        self,
        *,
        recursive: bool,
        include_hidden: bool,
        follow_symlinks: bool,
        extensions: Iterable[str],
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.extensions = frozenset(extension.lower() for extension in extensions)

    def scan(self, root: Path, *, exclude: Iterable[Path] = ()) -> Iterator[PendingFile]:
        """Yield files under ``root`` in sorted order.

        Args:
            root: Directory to scan.
            exclude: Directories whose contents must be skipped, such as a
                destination root nested inside the source.

        Yields:
            PendingFile: Discovered files; ``supported`` reflects the extension filter.
        """
        root = root.expanduser().resolve()
        if not root.is_dir():
            return
        excluded = [path.expanduser().resolve() for path in exclude]

        for path in sorted(self._iter_paths(root)):
            if path.is_symlink() and not self.follow_symlinks:
                continue
            if not path.is_file():
                continue
            try:
                relative = path.relative_to(root)
            except ValueError:
                relative = Path(path.name)
            if not self.include_hidden and _is_hidden(relative):
                continue
            if any(_is_within(path, directory) for directory in excluded):
                continue
            try:
                stat = path.stat()
            except OSError:
                continue

            yield PendingFile(
                path=path,
                size_bytes=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                supported=path.suffix.lower() in self.extensions,
            )

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        """Internal helper to iterate candidate paths."""
        if self.recursive:
            yield from root.rglob("*")
        else:
            yield from root.iterdir()


def _is_within(path: Path, directory: Path) -> bool:
    return path == directory or directory in path.parents


__all__ = ["DirectoryScanner"]
