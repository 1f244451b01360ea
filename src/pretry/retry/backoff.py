"""
Backoff delay calculation.
"""

from __future__ import annotations

import math
import random

from .config import MIN_DELAY_FLOOR, RetryConfig


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate the delay that follows a failed attempt.

    Args:
        attempt: 1-based number of the attempt that just failed
        config: Retry configuration

    Returns:
        Delay in seconds, rounded to whole milliseconds
    """
    base = max(config.min_timeout, MIN_DELAY_FLOOR)

    # Degenerate factors keep a constant delay instead of collapsing to zero.
    if config.factor > 0:
        try:
            delay = base * float(config.factor) ** (attempt - 1)
        except OverflowError:
            delay = math.inf
    else:
        delay = base

    if config.randomize:
        delay *= 1 + random.random()

    delay = min(delay, config.max_timeout)

    return round(delay, 3)
