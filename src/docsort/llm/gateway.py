"""Uniform access to the configured completion backend."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from docsort.organization.cancellation import CancellationToken, OrganizeCancelled

from .backends import BackendUnavailableError, CompletionBackend
from .models import Completion

LOGGER = logging.getLogger(__name__)


class ModelGateway:
    """Send prompts to one backend without letting its failures escape.

    Requests run on a single background worker so the caller can keep
    observing the cancellation token while a slow request is in flight.
    Transport, authorization, and rate-limit failures come back as
    ``Completion.error``; only cancellation propagates, as ``OrganizeCancelled``.
    """

    def __init__(self, backend: CompletionBackend, *, poll_interval: float = 0.2) -> None:
        self._backend = backend
        self._poll_interval = poll_interval
        self._executor: Optional[ThreadPoolExecutor] = None
        self.tokens_used = 0

    @property
    def backend(self) -> CompletionBackend:
        """Return the backend requests are dispatched to."""
        return self._backend

    def complete(self, prompt: str, cancellation: CancellationToken | None = None) -> Completion:
        """Return the completion for ``prompt``.

        Args:
            prompt: Full prompt text.
            cancellation: Token polled while waiting for the backend.

        Returns:
            Completion: Backend output, or a completion carrying ``error``.

        Raises:
            OrganizeCancelled: If cancellation is requested before or during the call.
        """

        if cancellation is not None:
            cancellation.raise_if_cancelled()
        try:
            if cancellation is None:
                completion = self._backend.complete(prompt)
            else:
                completion = self._wait(self._submit(prompt), cancellation)
        except OrganizeCancelled:
            raise
        except BackendUnavailableError as exc:
            LOGGER.debug("%s backend unavailable: %s", self._backend.name, exc)
            return Completion(error=f"{type(exc).__name__}: {exc}")
        except Exception as exc:
            LOGGER.warning("%s request failed: %s", self._backend.name, exc)
            return Completion(error=f"{type(exc).__name__}: {exc}")

        self.tokens_used += completion.tokens_used
        if not completion.text.strip() and completion.error is None:
            return completion.model_copy(update={"error": "empty response"})
        return completion

    def close(self) -> None:
        """Release the worker thread without waiting for abandoned requests."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "ModelGateway":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _submit(self, prompt: str) -> Future[Completion]:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docsort-llm")
        return self._executor.submit(self._backend.complete, prompt)

    def _wait(self, future: Future[Completion], cancellation: CancellationToken) -> Completion:
        while True:
            try:
                return future.result(timeout=self._poll_interval)
            except FutureTimeoutError:
                if cancellation.cancelled:
                    future.cancel()
                    LOGGER.info("Abandoning in-flight %s request after cancellation.", self._backend.name)
                    raise OrganizeCancelled("Organization run was cancelled.") from None


__all__ = ["ModelGateway"]
