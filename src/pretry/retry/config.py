"""
Retry configuration and per-attempt context.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Real
from typing import TYPE_CHECKING, Any, Awaitable, Callable, FrozenSet

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..signals import SignalLike

# Messages HTTP clients use for connectivity failures surfaced as TypeError.
DEFAULT_NETWORK_ERROR_MESSAGES: FrozenSet[str] = frozenset(
    {
        "network error",  # Chrome
        "failed to fetch",  # Chrome
        "networkerror when attempting to fetch resource.",  # Firefox
        "the internet connection appears to be offline.",  # Safari 16
        "load failed",  # Safari 17+
        "network request failed",  # cross-fetch
        "fetch failed",  # Undici
        "terminated",  # Undici
    }
)

# Smallest base delay, in seconds.
MIN_DELAY_FLOOR = 0.001


@dataclass(frozen=True)
class RetryContext:
    """
    Snapshot of a failed attempt, passed to on_failed_attempt and should_retry.

    Attributes:
        error: The classified error raised by the attempt
        attempt_number: 1-based number of the failed attempt
        retries_left: Retries still available after this attempt
    """

    error: BaseException
    attempt_number: int
    retries_left: float

    @classmethod
    def create(cls, error: BaseException, attempt_number: int, retries: float) -> "RetryContext":
        # The first attempt is not a retry.
        return cls(
            error=error,
            attempt_number=attempt_number,
            retries_left=retries - (attempt_number - 1),
        )


FailedAttemptHook = Callable[[RetryContext], "Awaitable[None] | None"]
ShouldRetryHook = Callable[[RetryContext], "Awaitable[bool] | bool"]


@dataclass(frozen=True)
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        retries: Maximum number of retries, int or math.inf (default: 10)
        factor: Exponential backoff factor (default: 2)
        min_timeout: Delay in seconds before the first retry (default: 1.0)
        max_timeout: Maximum delay in seconds between two attempts (default: inf)
        randomize: Multiply delays by a random factor in [1, 2) (default: False)
        max_retry_time: Time budget in seconds for the whole call (default: inf)
        on_failed_attempt: Called with a RetryContext after each retriable failure
        should_retry: Returns False to stop retrying (default: always retry)
        signal: Abort signal that cancels the call
        unref: Do not let pending delays keep the host alive (default: False)
        network_error_messages: TypeError messages treated as network errors
    """

    retries: float = 10
    factor: float = 2
    min_timeout: float = 1.0
    max_timeout: float = math.inf
    randomize: bool = False
    max_retry_time: float = math.inf
    on_failed_attempt: FailedAttemptHook | None = None
    should_retry: ShouldRetryHook | None = None
    signal: SignalLike | None = None
    unref: bool = False
    network_error_messages: FrozenSet[str] = field(
        default=DEFAULT_NETWORK_ERROR_MESSAGES, repr=False
    )

    def __post_init__(self) -> None:
        retries: Any = self.retries
        if (
            isinstance(retries, bool)
            or not isinstance(retries, Real)
            or not retries >= 0
            or (retries != math.inf and retries != int(retries))
        ):
            raise ConfigurationError(
                f"Expected `retries` to be a non-negative integer or math.inf, got {retries!r}"
            )

    @property
    def max_attempts(self) -> float:
        """Total number of attempts, including the first one."""
        return self.retries + 1

    @classmethod
    def aggressive(cls) -> "RetryConfig":
        """Preset for aggressive retry (more attempts, slower start, delays capped at two minutes)."""
        return cls(
            retries=20,
            min_timeout=2.0,
            max_timeout=120.0,
        )

    @classmethod
    def conservative(cls) -> "RetryConfig":
        """Preset for conservative retry (fewer attempts, shorter delays)."""
        return cls(
            retries=3,
            min_timeout=0.5,
            max_timeout=10.0,
        )

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """Preset for no retry (single attempt only)."""
        return cls(retries=0)
