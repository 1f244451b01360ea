"""
Base exception classes for retry operations.

Errors raised by the wrapped operation itself are never wrapped; the classes
here cover aborts, invalid configuration and values that are not exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..signals import SignalLike


class RetryError(Exception):
    """Base exception for all errors raised by pretry itself."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AbortError(RetryError):
    """
    Stops retrying immediately.

    Raise it from inside the operation when further attempts are futile
    (an HTTP 404, a validation failure). The engine also raises it when the
    abort signal fires; `signal` then references that signal and `cause`
    holds its reason.
    """

    def __init__(
        self,
        message: str = "Aborted",
        *,
        cause: Any = None,
        signal: SignalLike | None = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.signal = signal
        if isinstance(cause, BaseException):
            self.__cause__ = cause

    @classmethod
    def from_signal(
        cls, signal: SignalLike, message: str = "Aborted by signal"
    ) -> "AbortError":
        """Create an abort error carrying the signal's reason as cause."""
        return cls(message, cause=signal.reason, signal=signal)

    @classmethod
    def from_error(cls, error: BaseException, message: str = "Aborted by error") -> "AbortError":
        """Wrap an existing error so that retrying stops."""
        return cls(message, cause=error)


class ConfigurationError(RetryError, ValueError):
    """Raised before any attempt when the retry configuration is invalid."""


class NonErrorThrownError(RetryError, TypeError):
    """Wraps a failure value that is not an exception."""

    def __init__(self, value: Any):
        super().__init__(
            f"Non-error was thrown: {value!r}. You should only raise exceptions."
        )
        self.value = value


class InternalRetryError(RetryError, RuntimeError):
    """Raised if the retry loop ends without a result or an error."""
