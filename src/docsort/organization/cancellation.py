"""Cooperative cancellation shared by every step of an organize run."""

from __future__ import annotations

import threading


class OrganizeCancelled(Exception):
    """Raised inside a run when its cancellation token has been triggered."""


class CancellationToken:
    """Thread-safe flag checked between files and while waiting on slow calls."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of the run that observes this token."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Return True once cancellation has been requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise ``OrganizeCancelled`` when cancellation has been requested."""
        if self._event.is_set():
            raise OrganizeCancelled("Organization run was cancelled.")

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; return True if cancelled meanwhile."""
        return self._event.wait(timeout)


__all__ = ["CancellationToken", "OrganizeCancelled"]
