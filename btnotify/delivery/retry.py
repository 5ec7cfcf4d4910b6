"""
Bounded retry with a fixed delay between attempts.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhausted(Exception):
    """Raised when every allowed attempt failed with a transient error."""

    def __init__(self, last_error: BaseException, retries: int):
        super().__init__(f"Giving up after {retries} retries: {last_error}")
        self.last_error = last_error
        self.retries = retries


def is_io_error(error: BaseException) -> bool:
    """Socket and file errors are worth another try."""
    return isinstance(error, OSError)


async def retry_async(
    attempt: Callable[[int], Awaitable[T]],
    is_transient: Callable[[BaseException], bool] = is_io_error,
    max_retries: int = 10,
    delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
) -> Tuple[T, int]:
    """
    Call ``attempt(n)`` until it succeeds, at most ``max_retries + 1`` times.

    Args:
        attempt: Coroutine function receiving the zero-based attempt number
        is_transient: Decides whether an error may be retried
        max_retries: Retries allowed after the first attempt
        delay: Seconds to wait before each retry
        sleep: Awaitable sleep, replaceable in tests
        on_retry: Called with (attempt, error) before each wait

    Returns:
        (result, retries used)

    Raises:
        RetryExhausted: when the last allowed attempt failed transiently.
        Any non-transient error raised by ``attempt``, unchanged.
    """
    n = 0
    while True:
        try:
            return await attempt(n), n
        except Exception as e:
            if not is_transient(e):
                raise
            if n >= max_retries:
                raise RetryExhausted(e, n) from e
            if on_retry:
                on_retry(n, e)
        await sleep(delay)
        n += 1
