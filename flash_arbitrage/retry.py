"""
Retry with exponential backoff for async operations.

Delays follow ``min(base * 2**(attempt-1), cap)`` between attempts.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .constants import RETRY_BASE_DELAY_SECONDS, RETRY_MAX_DELAY_SECONDS
from .exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    max_delay: float = RETRY_MAX_DELAY_SECONDS,
) -> float:
    """Delay to wait after the given (1-based) failed attempt."""
    if attempt < 1:
        return 0.0
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    max_delay: float = RETRY_MAX_DELAY_SECONDS,
    description: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    fatal: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    Await ``func()`` until it succeeds or ``attempts`` calls have failed.

    Args:
        func: Zero-argument coroutine factory, called once per attempt
        attempts: Maximum number of calls (at least 1)
        base_delay: Delay after the first failure, in seconds
        max_delay: Upper bound for any single delay
        description: Label used in log lines
        sleep: Awaitable sleep, injectable for tests
        fatal: Exception types re-raised immediately without retrying

    Returns:
        The first successful result

    Raises:
        RetryExhaustedError: chained from the last underlying error
    """
    sleep = sleep or asyncio.sleep
    attempts = max(1, attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except fatal:
            raise
        except Exception as e:
            last_error = e
            if attempt == attempts:
                break
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                f"{description} failed (attempt {attempt}/{attempts}): {e}; "
                f"retrying in {delay:.1f}s"
            )
            await sleep(delay)

    raise RetryExhaustedError(
        f"{description} failed after {attempts} attempts: {last_error}",
        attempts=attempts,
    ) from last_error
