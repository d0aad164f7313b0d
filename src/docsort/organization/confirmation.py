"""Confirmation collaborators that finalize suggested names and folders.

A collaborator receives the current value, the suggestion, and a progress
callback, and returns the value to use. The organizer does not care whether
the answer comes from a person, a default policy, or a test double.
"""

from __future__ import annotations

from typing import Callable

import click

from .sanitize import (
    DEFAULT_PATH_LABEL,
    PLACEHOLDER,
    sanitize_filename_segment,
    sanitize_relative_path,
)

ProgressCallback = Callable[[str], None]
FilenameConfirmer = Callable[[str, str, ProgressCallback], str]
FolderPathConfirmer = Callable[[str, str, ProgressCallback], str]


def accept_suggestion(current: str, suggested: str, progress: ProgressCallback) -> str:
    """Non-interactive collaborator that always takes the suggestion."""
    return suggested


def prompt_filename_choice(original: str, suggested: str, progress: ProgressCallback) -> str:
    """Ask on the terminal whether to use the suggested base name.

    Empty input or ``y`` accepts, ``n`` keeps the original, anything else is
    taken as a custom name.
    """

    progress(f"Filename suggestion: '{original}' -> '{suggested}'")
    while True:
        answer = click.prompt(
            "Accept [Y], keep original [n], or type a new name",
            default="",
            show_default=False,
        ).strip()
        if not answer or answer.lower() == "y":
            return suggested
        if answer.lower() == "n":
            return original
        custom = sanitize_filename_segment(answer)
        if custom != PLACEHOLDER:
            return custom
        progress("That name is empty after removing invalid characters; try again.")


def prompt_folder_choice(predefined: str, suggested: str, progress: ProgressCallback) -> str:
    """Ask on the terminal whether to use the suggested folder path.

    Empty input or ``y`` accepts, ``n`` keeps the predefined path, anything
    else is taken as a custom relative path.
    """

    progress(f"Folder suggestion: '{predefined}' -> '{suggested}'")
    while True:
        answer = click.prompt(
            "Accept [Y], use predefined [n], or type a relative path",
            default="",
            show_default=False,
        ).strip()
        if not answer or answer.lower() == "y":
            return suggested
        if answer.lower() == "n":
            return predefined
        custom = sanitize_relative_path(answer)
        if custom != DEFAULT_PATH_LABEL or answer == DEFAULT_PATH_LABEL:
            return custom
        progress("That path is empty after removing invalid characters; try again.")


__all__ = [
    "FilenameConfirmer",
    "FolderPathConfirmer",
    "ProgressCallback",
    "accept_suggestion",
    "prompt_filename_choice",
    "prompt_folder_choice",
]
