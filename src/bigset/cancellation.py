"""Cancellation tokens with optional deadlines."""

from __future__ import annotations

import threading
import time

from .errors import CancellationError


class CancelToken:
    """Cooperative cancellation signal shared between a caller and an operation.

    A token fires either when :meth:`cancel` is called (from any thread) or
    once its deadline passes. Operations poll :attr:`cancelled` between input
    elements and from inside SQLite's progress handler.
    """

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    @classmethod
    def with_deadline(cls, deadline: float) -> CancelToken:
        """Build a token firing at ``deadline``, a :func:`time.monotonic` value."""

        token = cls()
        token._deadline = deadline
        return token

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancellationError("operation cancelled")


def check(cancel: CancelToken | None) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()
