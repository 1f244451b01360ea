"""
pretry - Retry a failing sync or async operation.

Exponential backoff with optional jitter, a time budget, abort signals and
hooks to inspect or veto each retry.
"""

from .exceptions import (
    RetryError,
    AbortError,
    ConfigurationError,
    NonErrorThrownError,
    InternalRetryError,
)
from .retry import (
    RetryConfig,
    RetryContext,
    calculate_delay,
    classify,
    is_network_error,
    make_retriable,
    make_retriable_sync,
    retriable,
    retry,
    retry_sync,
)
from .signals import AbortController, AbortSignal, SignalLike

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Engine
    "retry",
    "retry_sync",
    "make_retriable",
    "make_retriable_sync",
    "retriable",
    # Configuration
    "RetryConfig",
    "RetryContext",
    "calculate_delay",
    "classify",
    "is_network_error",
    # Cancellation
    "AbortController",
    "AbortSignal",
    "SignalLike",
    # Exceptions
    "RetryError",
    "AbortError",
    "ConfigurationError",
    "NonErrorThrownError",
    "InternalRetryError",
]
