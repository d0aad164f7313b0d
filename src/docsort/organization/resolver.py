"""Collision-free destination paths."""

from __future__ import annotations

from pathlib import Path


class DestinationResolver:
    """Hand out destination paths that never collide within a run.

    A candidate is rejected when it exists on disk or was already returned by
    this resolver, so two files resolved before either is moved still differ.
    """

    def __init__(self) -> None:
        self._claimed: set[Path] = set()

    def resolve(self, target_dir: Path, base_name: str, extension: str) -> Path:
        """Return an unused path ``target_dir/base_name[_N]extension``.

        Args:
            target_dir: Directory that will receive the file; created if missing.
            base_name: Sanitized base name without extension.
            extension: Original extension including the dot (may be empty).

        Returns:
            Path: Path that does not exist yet and was not handed out before.

        Raises:
            OSError: If the target directory cannot be created.
        """

        target_dir.mkdir(parents=True, exist_ok=True)
        candidate = target_dir / f"{base_name}{extension}"
        counter = 1
        while self._is_taken(candidate):
            candidate = target_dir / f"{base_name}_{counter}{extension}"
            counter += 1
        self._claimed.add(candidate)
        return candidate

    def release(self, path: Path) -> None:
        """Forget a claimed path whose move did not happen."""
        self._claimed.discard(path)

    def _is_taken(self, candidate: Path) -> bool:
        return candidate in self._claimed or candidate.exists() or candidate.is_symlink()


__all__ = ["DestinationResolver"]
