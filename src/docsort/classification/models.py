"""Classification data models."""

from __future__ import annotations

from typing import Iterator, Literal, Mapping, Optional

from pydantic import BaseModel

from docsort.config.models import ClassificationSettings


class CategoryMap:
    """Ordered mapping of category key to relative folder path.

    The fallback key is always present; lookups by model output are
    case-insensitive but always return the configured spelling.
    """

    def __init__(self, categories: Mapping[str, str], fallback: str) -> None:
        if not categories:
            raise ValueError("A category map needs at least one category.")
        self._paths = dict(categories)
        if fallback not in self._paths:
            self._paths[fallback] = f"0. {fallback}"
        self._fallback = fallback
        self._folded = {key.casefold(): key for key in self._paths}

    @classmethod
    def from_settings(cls, settings: ClassificationSettings) -> "CategoryMap":
        """Build a map from the ``classification`` configuration section."""
        return cls(settings.categories, settings.fallback_category)

    @property
    def fallback(self) -> str:
        """Return the fallback category key."""
        return self._fallback

    def keys(self) -> list[str]:
        """Return category keys in configured order."""
        return list(self._paths)

    def items(self) -> Iterator[tuple[str, str]]:
        """Iterate ``(key, relative path)`` pairs in configured order."""
        return iter(self._paths.items())

    def path_for(self, key: str) -> str:
        """Return the folder path for ``key``, or the fallback's path if unknown."""
        return self._paths.get(key, self._paths[self._fallback])

    def match(self, candidate: str) -> Optional[str]:
        """Return the configured key equal to ``candidate`` ignoring case."""
        return self._folded.get(candidate.strip().casefold())

    def __contains__(self, key: object) -> bool:
        return key in self._paths

    def __len__(self) -> int:
        return len(self._paths)


class ClassificationResult(BaseModel):
    """Outcome of classifying one document.

    Attributes:
        category: Category key; always present in the category map.
        source: Which stage produced the category.
        raw_response: Unprocessed model answer, when a model call was made.
        tokens_used: Tokens reported by the backend for this call.
    """

    category: str
    source: Literal["model", "heuristic", "fallback"]
    raw_response: Optional[str] = None
    tokens_used: int = 0


__all__ = ["CategoryMap", "ClassificationResult"]
