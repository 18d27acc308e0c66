"""Retry logic for rate-limited Reddit API requests."""

import asyncio
import logging
import random
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from aita_fetcher.exceptions import AuthExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]


def is_rate_limited(error: BaseException) -> bool:
    """Return True when the error represents an upstream 429 response."""
    if getattr(error, "status", None) == 429:
        return True
    return str(error).startswith("429")


def backoff_delay(attempt: int, backoff_base: float = 2.0, max_jitter: float = 1.0) -> float:
    """
    Compute the sleep before retrying after the given (0-based) attempt.

    The random component keeps concurrently starting clients from retrying
    in lockstep.
    """
    return backoff_base ** attempt + random.uniform(0, max_jitter)


def with_exponential_backoff(
    max_attempts: int = 5,
    backoff_base: float = 2.0,
    max_jitter: float = 1.0,
    should_retry: Callable[[BaseException], bool] = is_rate_limited,
    prometheus_exporter=None,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying async functions with exponential backoff and jitter.

    Only errors accepted by ``should_retry`` are retried; anything else is
    re-raised immediately. When the last attempt still fails with a retryable
    error, AuthExhausted is raised carrying the attempt count and last error.

    Args:
        max_attempts: Total number of attempts, including the first one
        backoff_base: Base of the exponential delay
        max_jitter: Upper bound of the uniform random delay added to each wait
        should_retry: Predicate deciding whether an error is transient
        prometheus_exporter: Optional Prometheus exporter for retry metrics

    Returns:
        Decorator function
    """
    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            last_error: Optional[BaseException] = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not should_retry(e):
                        raise
                    last_error = e

                    if attempt == max_attempts - 1:
                        logger.error(f"Max attempts ({max_attempts}) exceeded: {e}")
                        raise AuthExhausted(max_attempts, e) from e

                    delay = backoff_delay(attempt, backoff_base, max_jitter)
                    logger.warning(
                        f"Rate limited by Reddit. Retrying in {delay:.2f} seconds "
                        f"(attempt {attempt + 1}/{max_attempts})..."
                    )
                    if prometheus_exporter:
                        prometheus_exporter.record_auth_retry()
                    await asyncio.sleep(delay)

            # Only reachable when max_attempts < 1
            raise AuthExhausted(max_attempts, last_error or RuntimeError("no attempts made"))

        return cast(AsyncFunc[T], wrapper)
    return decorator
