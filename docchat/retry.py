"""Retry-with-exponential-backoff for async provider calls."""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from docchat.errors import MaxRetriesExceeded

logger = structlog.get_logger()

T = TypeVar("T")


def always_retry(exc: BaseException) -> bool:
    return True


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    is_retryable: Callable[[BaseException], bool] = always_retry,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``fn`` until it succeeds, doubling the delay after each failure.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt
        max_attempts: Total number of attempts, including the first
        base_delay: Seconds to wait after the first failure
        is_retryable: Predicate deciding whether a failure may be retried.
            Terminal failures are re-raised immediately.
        sleep: Awaitable sleep used between attempts

    Returns:
        The result of the first successful attempt

    Raises:
        The last error once attempts are exhausted, or the first terminal error
    """
    delay = base_delay
    last_error: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await fn()
        except Exception as e:
            last_error = e

            if attempt == max_attempts or not is_retryable(e):
                raise

            logger.warning(
                "retrying_after_failure",
                attempt=attempt,
                max_attempts=max_attempts,
                delay_seconds=delay,
                error=str(e),
                error_type=type(e).__name__,
            )
            await sleep(delay)
            delay *= 2

    # Only reachable when max_attempts < 1
    raise MaxRetriesExceeded(details=str(last_error) if last_error else None)
