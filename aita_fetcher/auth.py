"""OAuth credential acquisition for the Reddit API."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp

from aita_fetcher.collector.error_handler import with_exponential_backoff
from aita_fetcher.config import AuthConfig
from aita_fetcher.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Bearer token issued by the Reddit token endpoint."""

    access_token: str
    expires_at: float
    token_type: str = "bearer"
    scope: str = ""

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"


class TokenAcquirer:
    """
    Obtains bearer credentials through the resource-owner password grant.

    Rate-limited (429) exchanges are retried with exponential backoff and
    jitter; every other failure is fatal on first occurrence.
    """

    def __init__(
        self,
        config: AuthConfig,
        user_agent: str,
        session: Optional[aiohttp.ClientSession] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the token acquirer.

        Args:
            config: Token endpoint and retry configuration
            user_agent: User-Agent sent with the token request
            session: Optional session to reuse; a short-lived one is opened otherwise
            prometheus_exporter: Optional Prometheus metrics exporter
        """
        self.config = config
        self.user_agent = user_agent
        self.session = session
        self.prometheus_exporter = prometheus_exporter

    async def acquire(
        self,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
    ) -> Credential:
        """
        Exchange account credentials for a bearer token.

        Returns:
            Fresh credential

        Raises:
            AuthExhausted: If every attempt was rate limited
            AuthError: On any non rate-limit failure
        """
        exchange = with_exponential_backoff(
            max_attempts=self.config.max_attempts,
            backoff_base=self.config.backoff_base,
            max_jitter=self.config.max_jitter_sec,
            prometheus_exporter=self.prometheus_exporter,
        )(self._exchange)

        if self.session is not None:
            return await exchange(self.session, client_id, client_secret, username, password)

        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_sec)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await exchange(session, client_id, client_secret, username, password)

    async def _exchange(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
    ) -> Credential:
        """Perform a single password-grant token exchange."""
        logger.debug(f"Requesting access token from {self.config.token_url}")
        form = {"grant_type": "password", "username": username, "password": password}

        try:
            async with session.post(
                self.config.token_url,
                data=form,
                auth=aiohttp.BasicAuth(client_id, client_secret),
                headers={"User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout_sec),
            ) as response:
                if response.status == 429:
                    raise AuthError("Too Many Requests", status=429)
                if response.status != 200:
                    raise AuthError(f"token endpoint returned status {response.status}", status=response.status)
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise AuthError(f"failed to decode token response: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AuthError(f"token request failed: {e!r}") from e

        if not isinstance(payload, dict):
            raise AuthError("unexpected token response")
        if "error" in payload:
            raise AuthError(f"token endpoint rejected credentials: {payload['error']}")
        access_token = payload.get("access_token")
        if not access_token:
            raise AuthError("token response did not include an access token")

        expires_in = float(payload.get("expires_in") or 3600)
        logger.info(f"Obtained Reddit access token (expires in {expires_in:.0f}s)")
        return Credential(
            access_token=access_token,
            expires_at=time.time() + expires_in,
            token_type=str(payload.get("token_type") or "bearer"),
            scope=str(payload.get("scope") or ""),
        )
