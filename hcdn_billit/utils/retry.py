"""
Backoff retry for billit requests.

A request is retried when billit cannot be reached, answers 5xx, or asks to
slow down (429). Anything else is the caller's problem and is re-raised on
the first attempt.

Responsibility: Retry transient store failures with exponential backoff
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar
import logging

import httpx

logger = logging.getLogger(__name__)

T = TypeVar('T')

TOO_MANY_REQUESTS = 429


class RetryError(Exception):
    """Raised when a transient failure outlives every attempt"""

    def __init__(self, message: str, last_exception: Optional[Exception] = None):
        super().__init__(message)
        self.last_exception = last_exception


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True
) -> float:
    """
    Delay before the next attempt.

    Doubles with each attempt up to max_delay. Jitter scales the delay by a
    random factor in [0.5, 1.0] so publishers do not hit billit in lockstep.

    Example:
        >>> calculate_backoff(3, jitter=False)
        8.0
    """
    delay = min(base_delay * 2 ** attempt, max_delay)
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay


def is_retryable_error(exception: Exception) -> bool:
    """Connection problems, 5xx and 429 are worth another attempt"""
    if isinstance(exception, httpx.TransportError):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
        return status_code >= 500 or status_code == TOO_MANY_REQUESTS
    return False


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    logger_instance: Optional[logging.Logger] = None
) -> T:
    """
    Await func until it succeeds or attempts run out.

    Args:
        func: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total attempts; 1 disables retrying
        base_delay: First backoff delay in seconds
        max_delay: Backoff cap in seconds
        logger_instance: Logger for attempt messages (module logger if None)

    Raises:
        RetryError: The last attempt failed with a retryable error
        Exception: Non-retryable errors propagate unchanged
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    log = logger_instance or logger
    attempt = 0

    while True:
        try:
            result = await func()
        except Exception as e:
            if not is_retryable_error(e):
                raise

            attempt += 1
            if attempt >= max_attempts:
                if max_attempts > 1:
                    log.error(f"Giving up after {max_attempts} attempts: {e}")
                raise RetryError(f"Failed after {max_attempts} attempts", last_exception=e)

            delay = calculate_backoff(attempt - 1, base_delay, max_delay)
            log.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e}. Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
        else:
            if attempt:
                log.info(f"Succeeded after {attempt + 1} attempts")
            return result
