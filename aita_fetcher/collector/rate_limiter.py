"""Rate limiting functionality for Reddit API requests."""

import asyncio
import logging
import time
from typing import Any, Mapping, Optional

from aita_fetcher.config import RateLimitConfig

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token-bucket rate limiter for Reddit API requests.

    The bucket holds ``burst`` tokens and regains one every
    ``min_interval_sec``. Every request acquires one token first, so requests
    stay under the upstream ceiling no matter how call sites are arranged.
    X-Ratelimit headers are tracked as well and, when few calls remain, the
    limiter waits for the window to reset.
    """

    def __init__(self, config: RateLimitConfig):
        """
        Initialize the rate limiter with configuration.

        Args:
            config: Rate limiting configuration
        """
        self.config = config
        self.capacity = float(max(1, config.burst))
        self.tokens = self.capacity
        self.refill_interval = config.min_interval_sec
        self.last_refill = time.monotonic()
        self.remaining_calls: Optional[int] = None
        self.reset_timestamp: Optional[float] = None
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_refill
        if elapsed > 0:
            self.tokens = min(self.capacity, self.tokens + elapsed / self.refill_interval)
        self.last_refill = now

    async def acquire(self) -> None:
        """
        Wait until a request may be issued and consume one token.

        This should be called before each Reddit API request.
        """
        async with self._lock:
            self._refill()
            if self.tokens < 1:
                wait_time = (1 - self.tokens) * self.refill_interval
                logger.debug(f"Pacing request, sleeping {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
                self._refill()
                # Sleep may return marginally early; the wait itself earned the token
                self.tokens = max(self.tokens, 1.0)
            self.tokens -= 1

            if (self.remaining_calls is not None and
                    self.reset_timestamp is not None and
                    self.remaining_calls < self.config.min_remaining_calls):
                wait_time = self.reset_timestamp - time.monotonic() + self.config.sleep_buffer_sec
                remaining = self.remaining_calls
                # Cleared before sleeping so a cancelled wait is not repeated
                self.remaining_calls = None
                self.reset_timestamp = None
                if wait_time > 0:
                    logger.info(f"Rate limit approaching: {remaining} calls remaining. "
                                f"Sleeping for {wait_time:.2f}s until reset.")
                    await asyncio.sleep(wait_time)

    def update_from_headers(self, headers: Mapping[str, Any]) -> None:
        """
        Update rate limit tracking based on Reddit API response headers.

        Args:
            headers: Response headers from a Reddit API request
        """
        lowered = {str(k).lower(): v for k, v in headers.items()}

        if "x-ratelimit-remaining" in lowered:
            try:
                self.remaining_calls = int(float(lowered["x-ratelimit-remaining"]))
            except (ValueError, TypeError):
                logger.warning("Failed to parse x-ratelimit-remaining header")

        if "x-ratelimit-reset" in lowered:
            try:
                reset_seconds = float(lowered["x-ratelimit-reset"])
                self.reset_timestamp = time.monotonic() + reset_seconds
            except (ValueError, TypeError):
                logger.warning("Failed to parse x-ratelimit-reset header")

        if self.remaining_calls is not None and self.reset_timestamp is not None:
            reset_in = self.reset_timestamp - time.monotonic()
            logger.debug(f"Rate limit status: {self.remaining_calls} calls remaining, "
                         f"reset in {reset_in:.2f}s")
