"""Model-backed suggestions for filenames and destination folders.

Both advisors treat the model answer as advisory: it is cleaned, sanitized,
and handed to an optional confirmation collaborator. Anything unusable falls
back to the original base name or the predefined category folder.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePath
from typing import Optional

from docsort.classification.models import CategoryMap
from docsort.llm import ModelGateway

from .cancellation import CancellationToken, OrganizeCancelled
from .confirmation import FilenameConfirmer, FolderPathConfirmer, ProgressCallback
from .models import FilenameDecision, FolderDecision
from .sanitize import (
    DEFAULT_PATH_LABEL,
    PLACEHOLDER,
    clean_category_path,
    clean_original_name,
    sanitize_filename_segment,
    sanitize_relative_path,
)

LOGGER = logging.getLogger(__name__)

_ANSWER_PREFIX = re.compile(
    r"^(?:filename|file name|bestandsnaam|name|folder|path|folder path|map|pad)\s*[:=\-]\s*",
    re.IGNORECASE,
)
_STRIP_CHARS = " \t\"'`*“”‘’«»"
_PLACEHOLDER_ANSWERS = frozenset(
    {
        "",
        "-",
        "none",
        "null",
        "n/a",
        "na",
        "unknown",
        "onbekend",
        "geen",
        "default",
        "default_path",
        DEFAULT_PATH_LABEL.casefold(),
        "uncategorized_path",
    }
)


def _first_answer_line(raw: str) -> str:
    line = next((candidate for candidate in raw.splitlines() if candidate.strip()), "")
    line = line.strip().strip(_STRIP_CHARS)
    line = _ANSWER_PREFIX.sub("", line)
    return line.strip().strip(_STRIP_CHARS)


def _noop_progress(message: str) -> None:
    return None


class FilenameAdvisor:
    """Suggest a concise, descriptive base name for a document."""

    def __init__(
        self,
        gateway: ModelGateway,
        *,
        max_prompt_chars: int = 4_000,
    ) -> None:
        self._gateway = gateway
        self._max_prompt_chars = max_prompt_chars

    def build_prompt(self, text: str, original_filename: str, category: str) -> str:
        return "\n".join(
            [
                "Suggest a concise, descriptive filename for the document below.",
                f"The document was classified as '{category}'.",
                f"Its current filename is '{original_filename}'.",
                "Rules: no file extension, no path separators, no characters that are "
                'invalid in filenames (< > : " / \\ | ? *), at most 60 characters, '
                "words separated by underscores. Include a date when the document has one.",
                "Reply with the filename only.",
                "",
                "Document:",
                text[: self._max_prompt_chars],
            ]
        )

    def suggest(
        self,
        text: str,
        original_filename: str,
        category: str,
        cancellation: CancellationToken | None = None,
    ) -> Optional[str]:
        """Return a sanitized base name suggestion, or None when unusable.

        Args:
            text: Extracted document text; blank text skips the model call.
            original_filename: Current filename including extension.
            category: Category key used as context.
            cancellation: Token forwarded to the gateway.

        Returns:
            Optional[str]: Sanitized base name without extension.
        """

        if not text or not text.strip():
            return None
        completion = self._gateway.complete(
            self.build_prompt(text, original_filename, category), cancellation
        )
        if not completion.ok:
            LOGGER.info("No filename suggestion for %s: %s", original_filename, completion.error)
            return None

        answer = _first_answer_line(completion.text)
        extension = PurePath(original_filename).suffix
        if extension and answer.lower().endswith(extension.lower()):
            answer = answer[: -len(extension)]
        suggestion = sanitize_filename_segment(answer)
        if suggestion == PLACEHOLDER:
            return None
        return suggestion

    def choose(
        self,
        text: str,
        original_filename: str,
        category: str,
        *,
        confirm: FilenameConfirmer | None = None,
        progress: ProgressCallback | None = None,
        cancellation: CancellationToken | None = None,
    ) -> FilenameDecision:
        """Suggest a name and let the confirmation collaborator decide.

        Returns:
            FilenameDecision: Suggested name (if any) and the sanitized final choice.
        """

        report = progress or _noop_progress
        original_base = clean_original_name(PurePath(original_filename).stem)
        suggested = self.suggest(text, original_filename, category, cancellation)
        if suggested is None:
            return FilenameDecision(suggested=None, chosen=original_base)
        if confirm is None or suggested == original_base:
            return FilenameDecision(suggested=suggested, chosen=suggested)

        if cancellation is not None:
            cancellation.raise_if_cancelled()
        try:
            answer = confirm(original_base, suggested, report)
        except OrganizeCancelled:
            raise
        except Exception as exc:
            LOGGER.warning("Filename confirmation failed for %s: %s", original_filename, exc)
            report(f"Filename confirmation failed for {original_filename}; keeping original name.")
            return FilenameDecision(suggested=suggested, chosen=original_base)

        if answer.strip() == original_base:
            return FilenameDecision(suggested=suggested, chosen=original_base)
        chosen = sanitize_filename_segment(answer)
        if chosen == PLACEHOLDER:
            chosen = original_base
        return FilenameDecision(suggested=suggested, chosen=chosen)


class FolderPathAdvisor:
    """Suggest a complete relative folder path for a document."""

    def __init__(
        self,
        gateway: ModelGateway,
        category_map: CategoryMap,
        *,
        max_prompt_chars: int = 4_000,
        max_depth: int = 4,
    ) -> None:
        self._gateway = gateway
        self._categories = category_map
        self._max_prompt_chars = max_prompt_chars
        self._max_depth = max_depth

    def build_prompt(self, text: str, category: str, predefined_hint: str) -> str:
        examples = [f"- {path}" for _, path in self._categories.items()]
        return "\n".join(
            [
                "Suggest the folder where the document below should be stored.",
                f"The document was classified as '{category}'; "
                f"its predefined folder is '{predefined_hint}'.",
                "You may refine or replace the predefined folder. Existing folders for inspiration:",
                *examples,
                "",
                f"Reply with one relative path using '/' between at most {self._max_depth} "
                "folder names, without a filename and without any explanation.",
                "",
                "Document:",
                text[: self._max_prompt_chars],
            ]
        )

    def suggest(
        self,
        text: str,
        category: str,
        predefined_hint: str,
        cancellation: CancellationToken | None = None,
    ) -> Optional[str]:
        """Return a sanitized relative path suggestion, or None when unusable."""

        if not text or not text.strip():
            return None
        completion = self._gateway.complete(
            self.build_prompt(text, category, predefined_hint), cancellation
        )
        if not completion.ok:
            LOGGER.info("No folder suggestion for category %s: %s", category, completion.error)
            return None

        answer = _first_answer_line(completion.text)
        if answer.strip("/\\ ").casefold() in _PLACEHOLDER_ANSWERS:
            return None
        sanitized = sanitize_relative_path(answer)
        if sanitized == DEFAULT_PATH_LABEL:
            return None
        return "/".join(sanitized.split("/")[: self._max_depth])

    def choose(
        self,
        text: str,
        category: str,
        predefined: str,
        *,
        confirm: FolderPathConfirmer | None = None,
        progress: ProgressCallback | None = None,
        cancellation: CancellationToken | None = None,
    ) -> FolderDecision:
        """Suggest a folder and let the confirmation collaborator decide.

        When the collaborator's answer is unusable the predefined path wins.

        Returns:
            FolderDecision: Suggested path (if any) and the sanitized final choice.
        """

        report = progress or _noop_progress
        predefined_path = clean_category_path(predefined)
        suggested = self.suggest(text, category, predefined_path, cancellation)
        if suggested is None:
            return FolderDecision(suggested=None, chosen=predefined_path)
        if confirm is None or suggested == predefined_path:
            return FolderDecision(suggested=suggested, chosen=suggested)

        if cancellation is not None:
            cancellation.raise_if_cancelled()
        try:
            answer = confirm(predefined_path, suggested, report)
        except OrganizeCancelled:
            raise
        except Exception as exc:
            LOGGER.warning("Folder confirmation failed for category %s: %s", category, exc)
            report("Folder confirmation failed; using the predefined folder.")
            return FolderDecision(suggested=suggested, chosen=predefined_path)

        if not answer or not answer.strip() or answer.strip() == predefined_path:
            return FolderDecision(suggested=suggested, chosen=predefined_path)
        chosen = sanitize_relative_path(answer)
        if chosen == DEFAULT_PATH_LABEL and answer.strip() != DEFAULT_PATH_LABEL:
            chosen = predefined_path
        return FolderDecision(suggested=suggested, chosen=chosen)


__all__ = ["FilenameAdvisor", "FolderPathAdvisor"]
