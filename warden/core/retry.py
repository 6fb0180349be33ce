"""Retry utilities for provider calls.

Exponential backoff for transient network failures and for upstream
responses the caller marks as retryable (typically 5xx).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 2
DEFAULT_BASE_DELAY = 0.2  # seconds

T = TypeVar("T")


def calculate_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Backoff before the next try: base_delay * 2^attempt (attempt is 0-based)."""
    return base_delay * (2**attempt)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    base_delay: float = DEFAULT_BASE_DELAY,
    retry_if: Callable[[T], bool] | None = None,
) -> T:
    """Run fn until it succeeds or attempts are exhausted.

    Args:
        fn: Zero-argument coroutine factory
        attempts: Maximum number of tries (1 means no retry)
        exceptions: Exception types that trigger another try
        base_delay: Base delay in seconds for exponential backoff
        retry_if: Predicate on the result; True means "try again"

    Returns:
        The first accepted result, or the last result when retry_if still
        rejects it after the final attempt.

    Raises:
        The last caught exception if every attempt raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(attempts - 1):
        try:
            result = await fn()
        except exceptions as e:
            logger.warning(
                "Attempt %d/%d failed with %s, retrying",
                attempt + 1,
                attempts,
                type(e).__name__,
            )
        else:
            if retry_if is None or not retry_if(result):
                return result
            logger.warning(
                "Attempt %d/%d returned a retryable result", attempt + 1, attempts
            )
        await asyncio.sleep(calculate_delay(attempt, base_delay))

    # Final attempt: its error propagates and its result is returned as is.
    return await fn()

