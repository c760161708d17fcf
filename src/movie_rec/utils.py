"""Retry decorator for the async provider clients."""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from .config import MAX_HTTP_RETRIES, RETRY_BACKOFF, RETRY_INITIAL_DELAY

logger = logging.getLogger(__name__)

T = TypeVar('T')


def async_retry_with_backoff(
    max_retries: int = MAX_HTTP_RETRIES,
    initial_delay: float = RETRY_INITIAL_DELAY,
    backoff_factor: float = RETRY_BACKOFF,
    exceptions: tuple = (Exception,)
):
    """
    Async decorator that retries a coroutine with exponential backoff on failure.

    Only the listed exception types are retried; anything else propagates on
    the first occurrence. After the last attempt the final exception is re-raised.

    Args:
        max_retries: Maximum number of attempts
        initial_delay: Delay in seconds before the first retry
        backoff_factor: Multiplier for delay between retries
        exceptions: Tuple of exception types to catch and retry

    Example:
        @async_retry_with_backoff(exceptions=(httpx.TransportError,))
        async def fetch(client, url):
            return await client.get(url)
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay
            last_exception: BaseException | None = None

            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        logger.warning(
                            f"{func.__name__} failed (attempt {attempt + 1}/{max_retries}): {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                        await asyncio.sleep(delay)
                        delay *= backoff_factor
                    else:
                        logger.error(
                            f"{func.__name__} failed after {max_retries} attempts: {e}"
                        )

            raise last_exception

        return wrapper
    return decorator
