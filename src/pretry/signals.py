"""
Cooperative cancellation for retry loops.

An AbortController owns an AbortSignal; the retry engine only reads the
signal through the SignalLike protocol, so any object with the same surface
can be passed instead.

Example:
    >>> controller = AbortController()
    >>> task = asyncio.create_task(retry(fetch, signal=controller.signal))
    >>> controller.abort(RuntimeError("user cancelled"))
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Protocol, runtime_checkable

from .exceptions import AbortError

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


@runtime_checkable
class SignalLike(Protocol):
    """Read-only view of a one-shot cancellation signal."""

    @property
    def aborted(self) -> bool: ...

    @property
    def reason(self) -> Any: ...

    def throw_if_aborted(self) -> None: ...

    def add_listener(self, listener: Listener) -> None: ...

    def remove_listener(self, listener: Listener) -> None: ...


class AbortSignal:
    """
    One-shot, thread-safe abort signal.

    Listeners run once, on the thread that calls abort. A listener added
    after the signal fired runs immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._aborted = False
        self._reason: Any = None
        self._listeners: list[Listener] = []

    @classmethod
    def abort(cls, reason: Any = None) -> "AbortSignal":
        """Return a signal that is already aborted."""
        signal = cls()
        signal._fire(reason)
        return signal

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Any:
        return self._reason

    def throw_if_aborted(self) -> None:
        """Raise AbortError if the signal has fired."""
        if self._aborted:
            raise AbortError.from_signal(self)

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            if not self._aborted:
                self._listeners.append(listener)
                return
        self._notify(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def _fire(self, reason: Any) -> bool:
        with self._lock:
            if self._aborted:
                return False
            self._aborted = True
            self._reason = (
                reason if reason is not None else AbortError("This operation was aborted")
            )
            listeners, self._listeners = self._listeners, []

        for listener in listeners:
            self._notify(listener)
        return True

    def _notify(self, listener: Listener) -> None:
        try:
            listener()
        except Exception:
            logger.exception("Abort listener failed")

    def __repr__(self) -> str:
        return f"AbortSignal(aborted={self._aborted}, reason={self._reason!r})"


class AbortController:
    """Owner of an AbortSignal."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """
        Abort the signal.

        Args:
            reason: Value exposed as `signal.reason`; defaults to an AbortError.
                Calling abort again has no effect.
        """
        if self.signal._fire(reason):
            logger.debug(f"Signal aborted: {self.signal.reason!r}")
