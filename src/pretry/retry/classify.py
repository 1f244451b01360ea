"""
Failure classification: abort, fatal or retriable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet

from ..exceptions import AbortError, NonErrorThrownError
from .config import DEFAULT_NETWORK_ERROR_MESSAGES


class Verdict(str, Enum):
    """How the retry engine treats a failure."""

    ABORT = "abort"  # stop now, re-raise unchanged
    FATAL = "fatal"  # programming error, stop now
    RETRIABLE = "retriable"  # subject to hooks and budgets


@dataclass(frozen=True)
class Classification:
    """A normalized failure and its verdict."""

    error: BaseException
    verdict: Verdict

    @property
    def fatal(self) -> bool:
        return self.verdict is not Verdict.RETRIABLE


def is_network_error(
    error: BaseException,
    messages: AbstractSet[str] = DEFAULT_NETWORK_ERROR_MESSAGES,
) -> bool:
    """
    Best-effort check for a connectivity failure reported as a TypeError.

    Clients word these differently, so the message is matched
    case-insensitively against a list of known fragments.
    """
    if not isinstance(error, TypeError):
        return False
    text = str(error).lower()
    return any(fragment in text for fragment in messages)


def classify(
    thrown: object,
    network_error_messages: AbstractSet[str] = DEFAULT_NETWORK_ERROR_MESSAGES,
) -> Classification:
    """
    Classify a failure raised by an attempt.

    Args:
        thrown: Whatever the attempt failed with
        network_error_messages: Fragments that make a TypeError retriable

    Returns:
        Classification holding an exception instance and its verdict
    """
    if not isinstance(thrown, BaseException):
        return Classification(NonErrorThrownError(thrown), Verdict.RETRIABLE)

    # KeyboardInterrupt, SystemExit, CancelledError
    if not isinstance(thrown, Exception):
        return Classification(thrown, Verdict.FATAL)

    if isinstance(thrown, AbortError):
        return Classification(thrown, Verdict.ABORT)

    # NonErrorThrownError is a TypeError too, but only ever wraps a bad value.
    if (
        isinstance(thrown, TypeError)
        and not isinstance(thrown, NonErrorThrownError)
        and not is_network_error(thrown, network_error_messages)
    ):
        return Classification(thrown, Verdict.FATAL)

    return Classification(thrown, Verdict.RETRIABLE)
