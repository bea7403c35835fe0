"""
Utility for retrying rate-limited remote calls with exponential backoff.
"""
import time
import random
import logging
from functools import wraps
from typing import TypeVar, Callable, Any

from ..config import MAX_RETRIES, RETRY_BACKOFF_FACTOR

# Type variable for generic function
T = TypeVar('T')

logger = logging.getLogger(__name__)


def with_retry(
    max_retries: int = MAX_RETRIES,
    backoff_factor: float = RETRY_BACKOFF_FACTOR,
    exceptions: tuple = (Exception,)
) -> Callable:
    """
    Decorator for retrying functions with exponential backoff.

    Only the listed exceptions are retried; anything else propagates on
    the first attempt.

    Args:
        max_retries: Maximum number of retry attempts
        backoff_factor: Multiplier for retry delay
        exceptions: Tuple of exceptions to catch and retry on

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        func_name = getattr(func, '__name__', 'function')

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0

            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    attempt += 1
                    if attempt > max_retries:
                        logger.error(f"Max retries ({max_retries}) exceeded for {func_name}")
                        raise

                    # Backoff delay with jitter
                    delay = backoff_factor ** attempt + random.uniform(0, 1)
                    logger.warning(
                        f"Attempt {attempt}/{max_retries} failed for {func_name}: "
                        f"{e.__class__.__name__}: {str(e)}. Retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)

        return wrapper
    return decorator
