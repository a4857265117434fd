"""
Retry with exponential backoff for network reads.

Only transient failures are retried: HTTP 429, connection resets and
timeouts. Everything else propagates on first occurrence.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx
import structlog

from .errors import SquidApiError

logger = structlog.get_logger()

T = TypeVar("T")

RATE_LIMIT_STATUS = 429

SleepFn = Callable[[float], Awaitable[None]]


def is_transient_error(error: BaseException) -> bool:
    """Check whether an error is worth retrying."""
    if isinstance(error, SquidApiError):
        return error.status_code == RATE_LIMIT_STATUS
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code == RATE_LIMIT_STATUS
    # httpx.TimeoutException covers connect, read, write and pool timeouts
    if isinstance(error, (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError)):
        return True
    return isinstance(error, (ConnectionResetError, TimeoutError))


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 5,
    initial_delay: float = 1.0,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """
    Call `fn` until it succeeds, retrying transient failures.

    Delay before retry n (0-based) is initial_delay * 2**n, so the default
    schedule is 1s, 2s, 4s, 8s. At most `max_retries` attempts are made;
    the last error is re-raised once they are exhausted.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt in range(max_retries):
        try:
            return await fn()
        except Exception as e:
            if not is_transient_error(e) or attempt == max_retries - 1:
                raise

            delay = initial_delay * (2**attempt)
            logger.warning(
                "retrying_after_transient_error",
                error=str(e),
                delay_seconds=delay,
                attempt=attempt + 1,
                max_retries=max_retries,
            )
            await sleep(delay)

    # Unreachable: the final attempt either returns or raises
    raise RuntimeError("retry loop exited without a result")
