"""Retry logic with exponential backoff for AnkiConnect calls."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from obsidian_flashcard_sync.exceptions import is_retriable_error
from obsidian_flashcard_sync.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def retry(
    max_attempts: int = 3,
    initial_delay: float = 0.5,
    backoff_factor: float = 2.0,
    should_retry: Callable[[Exception], bool] = is_retriable_error,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Retry decorator with exponential backoff for coroutines.

    Only errors accepted by ``should_retry`` are retried; anything else is
    raised on the first attempt.

    Args:
        max_attempts: Maximum number of attempts
        initial_delay: Initial delay in seconds
        backoff_factor: Multiplier for delay after each attempt
        should_retry: Predicate deciding whether an error is transient

    Returns:
        Decorator function
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay
            retry_start_time = time.time()
            cumulative_wait_time = 0.0

            for attempt in range(1, max_attempts + 1):
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    if not should_retry(e):
                        raise
                    if attempt == max_attempts:
                        logger.error(
                            "retry_exhausted",
                            func=func.__name__,
                            attempts=attempt,
                            error=str(e),
                            error_type=type(e).__name__,
                            total_retry_time=round(time.time() - retry_start_time, 2),
                        )
                        raise

                    logger.warning(
                        "retry_attempt",
                        func=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay=delay,
                        error=str(e),
                        error_type=type(e).__name__,
                        action=kwargs.get("action") or (args[1] if len(args) > 1 else None),
                    )
                    await asyncio.sleep(delay)
                    cumulative_wait_time += delay
                    delay *= backoff_factor
                    continue

                if attempt > 1:
                    logger.info(
                        "retry_succeeded",
                        func=func.__name__,
                        attempt=attempt,
                        cumulative_wait_time=round(cumulative_wait_time, 2),
                    )
                return result

            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

        return wrapper

    return decorator
