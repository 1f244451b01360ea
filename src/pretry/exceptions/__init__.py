"""
pretry - Exception Hierarchy.

Errors raised by the retry engine itself, separate from operation errors.
"""

from .base import (
    RetryError,
    AbortError,
    ConfigurationError,
    NonErrorThrownError,
    InternalRetryError,
)

__all__ = [
    "RetryError",
    "AbortError",
    "ConfigurationError",
    "NonErrorThrownError",
    "InternalRetryError",
]
