"""Cooperative cancellation for one conversion request.

Responsibilities:
- Let another thread abort a running conversion promptly.
- Interrupt timed waits (poll intervals, backoff) without finishing them.
- Abort in-flight HTTP calls through registered cancel callbacks.
"""

from __future__ import annotations

from contextlib import contextmanager
import threading
from typing import Callable, Iterator

from .errors import OperationCancelledError


class CancellationToken:
    """Shared cancellation flag for waits and network calls of one request."""

    def __init__(self) -> None:
        """Initialize an un-cancelled token."""

        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation has been requested."""

        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation and run every registered cancel callback once."""

        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self, step: str) -> None:
        """Raise `OperationCancelledError` for `step` when cancellation was requested."""

        if self._event.is_set():
            raise OperationCancelledError(step)

    def wait(self, seconds: float, step: str) -> None:
        """Suspend for `seconds`, raising immediately if cancelled meanwhile."""

        if self._event.wait(max(0.0, seconds)):
            raise OperationCancelledError(step)

    @contextmanager
    def on_cancel(self, callback: Callable[[], None]) -> Iterator[None]:
        """Register `callback` for the duration of a block, e.g. waking an HTTP wait."""

        with self._lock:
            already_cancelled = self._event.is_set()
            if not already_cancelled:
                self._callbacks.append(callback)
        if already_cancelled:
            callback()
        try:
            yield
        finally:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
