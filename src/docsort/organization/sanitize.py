"""Turn free text into filesystem-safe file and folder names."""

from __future__ import annotations

import re

PLACEHOLDER = "_"
DEFAULT_PATH_LABEL = "Uncategorized"
MAX_SEGMENT_LENGTH = 100

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f-\x9f]')
_WHITESPACE = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")
_PATH_SPLIT = re.compile(r"[/\\]+")
_EDGE_CHARS = "_. "
_RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{index}" for index in range(1, 10)}
    | {f"LPT{index}" for index in range(1, 10)}
)


def sanitize_filename_segment(text: str | None) -> str:
    """Return a single safe path component derived from ``text``.

    Reserved and control characters become underscores, whitespace collapses
    to a single underscore, separators are trimmed from both ends, and the
    result is capped at ``MAX_SEGMENT_LENGTH`` characters.

    Args:
        text: Arbitrary input, typically a model answer or a typed custom name.

    Returns:
        str: Non-empty segment; ``PLACEHOLDER`` when nothing usable remains.
    """

    if not text:
        return PLACEHOLDER
    cleaned = _INVALID_CHARS.sub("_", text)
    cleaned = _WHITESPACE.sub("_", cleaned)
    cleaned = _UNDERSCORES.sub("_", cleaned).strip(_EDGE_CHARS)
    if len(cleaned) > MAX_SEGMENT_LENGTH:
        cleaned = cleaned[:MAX_SEGMENT_LENGTH].rstrip(_EDGE_CHARS)
    if not cleaned:
        return PLACEHOLDER
    if cleaned.split(".", 1)[0].upper() in _RESERVED_NAMES:
        cleaned = f"{cleaned}_"
    return cleaned


def sanitize_relative_path(text: str | None) -> str:
    """Return a safe ``/``-separated relative folder path derived from ``text``.

    Each segment is sanitized on its own; segments that reduce to the
    placeholder (including ``.`` and ``..``) are dropped.

    Args:
        text: Relative path using either separator style.

    Returns:
        str: Sanitized path, or ``DEFAULT_PATH_LABEL`` when nothing survives.
    """

    if not text or not text.strip():
        return DEFAULT_PATH_LABEL
    segments = [sanitize_filename_segment(part) for part in _PATH_SPLIT.split(text)]
    kept = [segment for segment in segments if segment != PLACEHOLDER]
    if not kept:
        return DEFAULT_PATH_LABEL
    return "/".join(kept)


def clean_category_path(text: str | None) -> str:
    """Return a configured category folder path made safe for the filesystem.

    Unlike ``sanitize_relative_path`` this keeps the configured spelling,
    including spaces, and only replaces characters that cannot appear in a
    folder name. Empty, ``.`` and ``..`` segments are dropped.

    Args:
        text: Relative path from the category map.

    Returns:
        str: ``/``-separated path, or ``DEFAULT_PATH_LABEL`` when nothing survives.
    """

    if not text or not text.strip():
        return DEFAULT_PATH_LABEL
    kept: list[str] = []
    for part in _PATH_SPLIT.split(text):
        segment = _INVALID_CHARS.sub("_", part).strip(" .")
        segment = segment[:MAX_SEGMENT_LENGTH].rstrip(" .")
        if not segment.strip("_"):
            continue
        if segment.split(".", 1)[0].strip().upper() in _RESERVED_NAMES:
            segment = f"{segment}_"
        kept.append(segment)
    if not kept:
        return DEFAULT_PATH_LABEL
    return "/".join(kept)


def clean_original_name(text: str | None) -> str:
    """Return an original file base name with only unusable characters replaced.

    Spaces and the original spelling are kept; reserved, control and
    separator characters become underscores. Used when a file keeps its
    own name rather than a suggested one.
    """

    if not text:
        return PLACEHOLDER
    cleaned = _INVALID_CHARS.sub("_", text).strip(" .")
    cleaned = cleaned[:MAX_SEGMENT_LENGTH].rstrip(" .")
    if not cleaned.strip("_ "):
        return PLACEHOLDER
    if cleaned.split(".", 1)[0].strip().upper() in _RESERVED_NAMES:
        cleaned = f"{cleaned}_"
    return cleaned


def is_placeholder(segment: str) -> bool:
    """Return True when ``segment`` is the sanitizer's empty-input sentinel."""
    return segment == PLACEHOLDER


__all__ = [
    "DEFAULT_PATH_LABEL",
    "MAX_SEGMENT_LENGTH",
    "PLACEHOLDER",
    "clean_category_path",
    "clean_original_name",
    "is_placeholder",
    "sanitize_filename_segment",
    "sanitize_relative_path",
]
