"""
Retry decorators with exponential backoff for checksum query execution

Provides:
- Exponential backoff with jitter
- Configurable max retries and retryable exception types
- Transient query-service error detection
- Callback support for metrics integration

Usage:
    from checksum_verifier.utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=1.0)
    def run_checksum_query(cursor, sql):
        cursor.execute(sql)
        return cursor.fetchone()
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

# Substrings of transient errors raised by query engines and their drivers
RETRYABLE_ERROR_PATTERNS = (
    "connection",
    "timeout",
    "timed out",
    "deadlock",
    "broken pipe",
    "network error",
    "service unavailable",
    "server unavailable",
    "too many requests",
    "no nodes available",
    "query queue is full",
    "communication link failure",
)

RETRYABLE_EXCEPTION_NAMES = frozenset({
    "connectionerror",
    "timeouterror",
    "operationalerror",
    "interfaceerror",
})


def compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """
    Delay before the next attempt (attempt is 0-based)

    Jitter is +/-25% of the delay, never going below 0.1s.
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        jitter_amount = delay * 0.25
        delay = max(0.1, delay + random.uniform(-jitter_amount, jitter_amount))
    return delay


def _retrying(
    func: Callable,
    should_retry: Callable[[Exception], bool],
    max_retries: int,
    delay_for: Callable[[int], float],
    on_retry: Optional[Callable[[int, Exception, float], None]],
) -> Callable:
    func_name = getattr(func, "__name__", "function")

    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        for attempt in range(max_retries + 1):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not should_retry(e):
                    logger.error(
                        f"Non-retryable error in {func_name}: {type(e).__name__}: {e}"
                    )
                    raise

                if attempt == max_retries:
                    logger.error(
                        f"Max retries ({max_retries}) exceeded for {func_name}: "
                        f"{type(e).__name__}: {e}"
                    )
                    raise

                delay = delay_for(attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{max_retries} failed for {func_name}: "
                    f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                )

                if on_retry:
                    try:
                        on_retry(attempt + 1, e, delay)
                    except Exception as callback_error:
                        logger.error(f"Error in retry callback: {callback_error}")

                time.sleep(delay)

        raise RuntimeError(f"Unexpected exit from retry loop in {func_name}")

    return wrapper


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
):
    """
    Decorator that retries a function with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Add random jitter to the delay (default: True)
        retryable_exceptions: Exception types to retry (default: all exceptions)
        on_retry: Callback(attempt, exception, delay) called before each retry

    Returns:
        Decorated function with retry logic
    """
    def should_retry(e: Exception) -> bool:
        return retryable_exceptions is None or isinstance(e, retryable_exceptions)

    def decorator(func: Callable) -> Callable:
        return _retrying(
            func,
            should_retry,
            max_retries,
            lambda attempt: compute_delay(attempt, base_delay, max_delay, exponential_base, jitter),
            on_retry,
        )

    return decorator


def is_retryable_db_exception(exception: Exception) -> bool:
    """
    Determine if a query execution error is transient

    Args:
        exception: The exception to check

    Returns:
        True for connection, timeout, overload and deadlock style errors
    """
    exception_str = str(exception).lower()
    exception_type = type(exception).__name__.lower()

    if exception_type in RETRYABLE_EXCEPTION_NAMES:
        return True

    return any(
        pattern in exception_str or pattern in exception_type
        for pattern in RETRYABLE_ERROR_PATTERNS
    )


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
):
    """
    Retry decorator for query execution that only retries transient errors

    Syntax errors, permission errors and similar fail immediately.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        on_retry: Callback(attempt, exception, delay) called before each retry
    """
    def decorator(func: Callable) -> Callable:
        return _retrying(
            func,
            is_retryable_db_exception,
            max_retries,
            lambda attempt: compute_delay(attempt, base_delay, 60.0),
            on_retry,
        )

    return decorator
