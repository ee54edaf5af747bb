import time
import logging
import functools
from typing import Callable, TypeVar

from .exceptions import LLMAPIError, LLMAuthenticationError, LLMRateLimitError, LLMTimeoutError

T = TypeVar('T')

LOGGER = logging.getLogger(__name__)


def with_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = (LLMRateLimitError, LLMTimeoutError),
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Retry decorator with exponential backoff

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay after each retry
            (a larger ``retry_after`` hint on the error wins)
        exceptions: Tuple of exceptions that trigger a retry
        sleep: Sleep function, replaceable in tests
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            current_delay = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except LLMAuthenticationError:
                    raise
                except exceptions as e:
                    if attempt == max_attempts:
                        raise LLMAPIError(
                            message=f"Failed after {max_attempts} attempts",
                            provider=getattr(e, "provider", ""),
                            error_type="retry_exhausted",
                            original_error=e
                        ) from e
                    wait = max(current_delay, getattr(e, "retry_after", None) or 0)
                    LOGGER.warning(
                        "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                        func.__name__, attempt, max_attempts, e, wait,
                    )
                    sleep(wait)
                    current_delay *= backoff
            raise AssertionError("unreachable")

        return wrapper
    return decorator


def log_request(func: Callable[..., T]) -> Callable[..., T]:
    """Log API requests for debugging"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> T:
        provider = args[0].__class__.__name__ if args else "Unknown"
        LOGGER.debug("[%s] Calling %s", provider, func.__name__)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            LOGGER.debug("[%s] %s failed: %s", provider, func.__name__, e)
            raise
        LOGGER.debug("[%s] %s succeeded", provider, func.__name__)
        return result

    return wrapper
