"""
pretry - Retry Logic.

Retry engine with exponential backoff, jitter, time budgets and abort signals.
"""

from .config import DEFAULT_NETWORK_ERROR_MESSAGES, RetryConfig, RetryContext
from .backoff import calculate_delay
from .classify import Classification, Verdict, classify, is_network_error
from .engine import make_retriable, make_retriable_sync, retriable, retry, retry_sync

__all__ = [
    "DEFAULT_NETWORK_ERROR_MESSAGES",
    "RetryConfig",
    "RetryContext",
    "calculate_delay",
    "Classification",
    "Verdict",
    "classify",
    "is_network_error",
    "retry",
    "retry_sync",
    "make_retriable",
    "make_retriable_sync",
    "retriable",
]
