"""
Retry Module (v1.0.0)
Exponential backoff for gateway calls.

Only throttling (429) and transient failures (transport errors, 408, 5xx) are
retried. Credits exhaustion, auth failures and parse errors fail immediately.
"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ootd_service.config.settings import get_settings
from ootd_service.core.errors import UpstreamError, UpstreamThrottled

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(error: Exception) -> bool:
    if isinstance(error, UpstreamThrottled):
        return True
    if isinstance(error, UpstreamError):
        return error.retryable
    return False


def backoff_delay(attempt: int, initial_delay: float, multiplier: float, max_delay: float) -> float:
    """Delay after the given (1-based) failed attempt."""
    return min(initial_delay * (multiplier ** (attempt - 1)), max_delay)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    multiplier: float = 2.0,
    max_delay: float = 10.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "gateway",
) -> T:
    """
    Await `fn` until it succeeds, fails permanently, or attempts run out.

    Args:
        fn: Zero-argument coroutine factory
        max_attempts: Total attempts including the first
        initial_delay: Seconds before the second attempt
        multiplier: Growth factor per attempt
        max_delay: Upper bound per wait
        sleep: Awaitable sleep (injected in tests)
        label: Name used in log lines

    Returns:
        Result of the first successful call

    Raises:
        The last error when it is not retryable or attempts are exhausted
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except Exception as e:
            if not is_retryable(e) or attempt >= max_attempts:
                raise

            delay = backoff_delay(attempt, initial_delay, multiplier, max_delay)
            logger.warning(f"[{label}] attempt {attempt}/{max_attempts} failed ({e}); retrying in {delay:.1f}s")
            await sleep(delay)


async def with_configured_retry(fn: Callable[[], Awaitable[T]], label: str = "gateway") -> T:
    """with_retry using the OOTD_RETRY_* settings."""
    settings = get_settings()
    return await with_retry(
        fn,
        max_attempts=settings.retry_max_attempts,
        initial_delay=settings.retry_initial_delay,
        multiplier=settings.retry_multiplier,
        max_delay=settings.retry_max_delay,
        label=label,
    )
