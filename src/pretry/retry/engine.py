"""
Retry engine and wrappers.

`retry` runs an operation until it succeeds, fails with a non-retriable
error, or runs out of retries or time. Attempts are strictly sequential;
the only race is between an inter-attempt delay and the abort signal.
"""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import inspect
import logging
import math
import threading
import time
from typing import Any, Awaitable, Callable, ParamSpec, TypeVar

from ..exceptions import AbortError, ConfigurationError, InternalRetryError
from ..signals import SignalLike
from .backoff import calculate_delay
from .classify import Classification, classify
from .config import RetryConfig, RetryContext

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _merge_config(config: RetryConfig | None, overrides: dict[str, Any]) -> RetryConfig:
    if config is None:
        config = RetryConfig()
    if overrides:
        # replace() runs __post_init__ again, so overrides are validated too
        config = dataclasses.replace(config, **overrides)
    return config


def _throw_if_aborted(signal: SignalLike | None) -> None:
    if signal is not None and signal.aborted:
        raise AbortError.from_signal(signal)


def _give_up(config: RetryConfig, attempt_number: int, elapsed: float) -> bool:
    return elapsed >= config.max_retry_time or attempt_number >= config.max_attempts


def _next_delay(config: RetryConfig, attempt_number: int, elapsed: float) -> float | None:
    """Backoff delay clamped to the time budget, or None once the budget is spent."""
    time_left = config.max_retry_time - elapsed
    if time_left <= 0:
        return None
    return min(calculate_delay(attempt_number, config), time_left)


def _log_fatal(classification: Classification, attempt_number: int) -> None:
    logger.debug(
        f"Attempt {attempt_number} failed with {classification.verdict.value} "
        f"error, not retrying: {classification.error!r}"
    )


def _log_retry(config: RetryConfig, context: RetryContext, delay: float) -> None:
    logger.warning(
        f"Attempt {context.attempt_number}/{config.max_attempts} failed: "
        f"{context.error}, retrying in {delay:.3f}s"
    )
    if config.unref:
        logger.debug("Delay scheduled as a background timer")


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def _sleep(delay: float, signal: SignalLike | None) -> None:
    """
    Suspend for `delay` seconds or until the signal fires, whichever is first.

    The timer handle and the signal listener are released on every exit path,
    including cancellation of the calling task.
    """
    loop = asyncio.get_running_loop()
    waiter = loop.create_future()

    def wake() -> None:
        if not waiter.done():
            waiter.set_result(None)

    def on_abort() -> None:
        # abort() may run on another thread
        loop.call_soon_threadsafe(wake)

    handle = loop.call_later(delay, wake) if math.isfinite(delay) else None
    if signal is not None:
        signal.add_listener(on_abort)
    try:
        await waiter
    finally:
        if handle is not None:
            handle.cancel()
        if signal is not None:
            signal.remove_listener(on_abort)

    if signal is not None and signal.aborted:
        logger.debug("Retry delay interrupted by abort signal")
        raise AbortError.from_signal(signal)


def _wait(delay: float, signal: SignalLike | None) -> None:
    """Blocking counterpart of _sleep."""
    event = threading.Event()
    if signal is not None:
        signal.add_listener(event.set)
    try:
        # Lock timeouts are bounded by the platform; longer waits end on the signal only.
        event.wait(delay if delay <= threading.TIMEOUT_MAX else None)
    finally:
        if signal is not None:
            signal.remove_listener(event.set)

    if signal is not None and signal.aborted:
        logger.debug("Retry delay interrupted by abort signal")
        raise AbortError.from_signal(signal)


async def retry(
    operation: Callable[[int], Awaitable[T] | T],
    config: RetryConfig | None = None,
    **overrides: Any,
) -> T:
    """
    Call `operation` until it succeeds or retrying stops.

    Does not retry AbortError, nor TypeError unless its message looks like a
    network failure (see classify).

    Args:
        operation: Receives the 1-based attempt number; may return an awaitable
        config: Retry configuration (default: RetryConfig())
        **overrides: RetryConfig fields overriding those of `config`

    Returns:
        The operation's result

    Raises:
        ConfigurationError: If the configuration is invalid
        AbortError: If the operation raised one or the signal fired
        Exception: The last operation error, or an error raised by a hook

    Example:
        >>> async def fetch(attempt):
        ...     response = await client.get(url)
        ...     if response.status_code == 404:
        ...         raise AbortError(response.reason_phrase)
        ...     return response.json()
        >>> data = await retry(fetch, retries=5)
    """
    config = _merge_config(config, overrides)
    signal = config.signal
    _throw_if_aborted(signal)

    start = time.monotonic()
    attempt_number = 0

    while attempt_number < config.max_attempts:
        attempt_number += 1
        _throw_if_aborted(signal)

        try:
            result = await _resolve(operation(attempt_number))
        except Exception as e:
            error = e
        else:
            _throw_if_aborted(signal)
            return result

        classification = classify(error, config.network_error_messages)
        if classification.fatal:
            _log_fatal(classification, attempt_number)
            raise classification.error

        context = RetryContext.create(classification.error, attempt_number, config.retries)

        # Always called, even when this was the last attempt.
        if config.on_failed_attempt is not None:
            await _resolve(config.on_failed_attempt(context))

        elapsed = time.monotonic() - start
        if _give_up(config, attempt_number, elapsed) or (
            config.should_retry is not None
            and not await _resolve(config.should_retry(context))
        ):
            logger.debug(f"Giving up after attempt {attempt_number}: {context.error!r}")
            raise classification.error

        delay = _next_delay(config, attempt_number, elapsed)
        if delay is None:
            raise classification.error

        _log_retry(config, context, delay)
        if delay > 0:
            await _sleep(delay, signal)

        _throw_if_aborted(signal)

    raise InternalRetryError("Retry attempts exhausted without raising an error")


def retry_sync(
    operation: Callable[[int], T],
    config: RetryConfig | None = None,
    **overrides: Any,
) -> T:
    """
    Blocking version of `retry` for synchronous operations and hooks.

    Delays block the calling thread; an abort signal fired from another
    thread interrupts them.

    Raises:
        ConfigurationError: If the operation returns an awaitable; async
            operations must go through `retry`
    """
    config = _merge_config(config, overrides)
    signal = config.signal
    _throw_if_aborted(signal)

    start = time.monotonic()
    attempt_number = 0

    while attempt_number < config.max_attempts:
        attempt_number += 1
        _throw_if_aborted(signal)

        try:
            result = operation(attempt_number)
        except Exception as e:
            error = e
        else:
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise ConfigurationError(
                    "retry_sync got an awaitable from the operation; use retry for async operations"
                )
            _throw_if_aborted(signal)
            return result

        classification = classify(error, config.network_error_messages)
        if classification.fatal:
            _log_fatal(classification, attempt_number)
            raise classification.error

        context = RetryContext.create(classification.error, attempt_number, config.retries)

        if config.on_failed_attempt is not None:
            config.on_failed_attempt(context)

        elapsed = time.monotonic() - start
        if _give_up(config, attempt_number, elapsed) or (
            config.should_retry is not None and not config.should_retry(context)
        ):
            logger.debug(f"Giving up after attempt {attempt_number}: {context.error!r}")
            raise classification.error

        delay = _next_delay(config, attempt_number, elapsed)
        if delay is None:
            raise classification.error

        _log_retry(config, context, delay)
        if delay > 0:
            _wait(delay, signal)

        _throw_if_aborted(signal)

    raise InternalRetryError("Retry attempts exhausted without raising an error")


def make_retriable(
    fn: Callable[P, Awaitable[T] | T],
    config: RetryConfig | None = None,
    **overrides: Any,
) -> Callable[P, Awaitable[T]]:
    """
    Wrap a function so that each call is retried on failure.

    Args:
        fn: Sync or async function to wrap
        config: Retry configuration (default: RetryConfig())
        **overrides: RetryConfig fields overriding those of `config`

    Returns:
        Async function forwarding its arguments to `fn` on every attempt

    Example:
        >>> get = make_retriable(client.get, retries=5)
        >>> response = await get("https://example.com/unicorn")
    """
    config = _merge_config(config, overrides)

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        return await retry(lambda _attempt: fn(*args, **kwargs), config)

    return wrapper


def make_retriable_sync(
    fn: Callable[P, T],
    config: RetryConfig | None = None,
    **overrides: Any,
) -> Callable[P, T]:
    """Blocking version of `make_retriable`."""
    config = _merge_config(config, overrides)

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        return retry_sync(lambda _attempt: fn(*args, **kwargs), config)

    return wrapper


def retriable(
    config: RetryConfig | None = None,
    **overrides: Any,
) -> Callable[[Callable[P, Awaitable[T] | T]], Callable[P, Awaitable[T]]]:
    """
    Decorator form of `make_retriable`.

    Example:
        >>> @retriable(retries=3, min_timeout=0.5)
        ... async def fetch_user(user_id: int) -> dict:
        ...     ...
    """

    def decorator(fn: Callable[P, Awaitable[T] | T]) -> Callable[P, Awaitable[T]]:
        return make_retriable(fn, config, **overrides)

    return decorator
