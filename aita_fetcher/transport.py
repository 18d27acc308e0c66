"""Authenticated HTTP transport shared by every Reddit API call."""

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, Dict, Optional

import aiohttp

from aita_fetcher.auth import Credential
from aita_fetcher.collector.rate_limiter import RateLimiter
from aita_fetcher.exceptions import DecodeError, TransportError, UpstreamError

logger = logging.getLogger(__name__)


class AuthenticatedTransport:
    """
    Issues GET requests carrying the bearer token and User-Agent.

    Reddit rejects requests without an identifying User-Agent, so both
    headers are installed as session defaults and callers never pass them.
    Every request first acquires the rate limiter. Nothing is mutated after
    construction except the lazily created session, so concurrent in-flight
    requests may share one transport.
    """

    def __init__(
        self,
        credential: Credential,
        user_agent: str,
        rate_limiter: RateLimiter,
        base_url: str = "https://oauth.reddit.com",
        request_timeout_sec: float = 10,
        session: Optional[aiohttp.ClientSession] = None,
        prometheus_exporter=None,
    ):
        self.credential = credential
        self.user_agent = user_agent
        self.rate_limiter = rate_limiter
        self.base_url = base_url.rstrip("/")
        self.request_timeout_sec = request_timeout_sec
        self.prometheus_exporter = prometheus_exporter
        self._session = session

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.credential.authorization_header,
            "User-Agent": self.user_agent,
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.request_timeout_sec),
            )
        return self._session

    async def pace(self) -> None:
        """Wait for the rate limiter without issuing a request."""
        await self.rate_limiter.acquire()

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None, paced: bool = True) -> Any:
        """
        GET a Reddit API path and decode the JSON body.

        Args:
            path: Path relative to the API base URL, e.g. ``/comments/abc``
            params: Query parameters
            paced: Acquire the rate limiter first; pass False when the caller
                already did so through :meth:`pace`

        Returns:
            Decoded JSON value

        Raises:
            UpstreamError: On a non-2xx response
            DecodeError: If the body is not valid JSON
            TransportError: On connection failure or request timeout
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        if paced:
            await self.rate_limiter.acquire()
        session = self._get_session()

        timer = self.prometheus_exporter.time_request() if self.prometheus_exporter else None
        try:
            with timer if timer else nullcontext():
                async with session.get(url, params=params, headers=self.headers) as response:
                    self.rate_limiter.update_from_headers(response.headers)
                    logger.debug(f"GET {url} -> {response.status}")

                    if not 200 <= response.status < 300:
                        self._record_error(str(response.status))
                        raise UpstreamError(response.status, url)

                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        self._record_error("decode")
                        raise DecodeError(f"failed to decode response from {url}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._record_error("connection")
            raise TransportError(f"request to {url} failed: {e!r}") from e

    def _record_error(self, error_type: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_api_error(error_type)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "AuthenticatedTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
