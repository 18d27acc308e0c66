"""Reddit API client owning the credential, transport and fetchers."""

import logging
from dataclasses import replace
from typing import Optional, Union

from aita_fetcher.auth import Credential, TokenAcquirer
from aita_fetcher.collector.listing import ListingFetcher
from aita_fetcher.collector.orchestrator import FetchOrchestrator
from aita_fetcher.collector.rate_limiter import RateLimiter
from aita_fetcher.collector.thread import ThreadFetcher
from aita_fetcher.config import Config
from aita_fetcher.models.item import FetchBatchResult, Item, TimeWindow
from aita_fetcher.transport import AuthenticatedTransport

logger = logging.getLogger(__name__)


class RedditClient:
    """
    Entry point for fetching posts and comments.

    Construct with :meth:`create` (or :meth:`from_config`), which acquires a
    credential before returning. The client owns its credential; there is no
    process-wide token state.
    """

    def __init__(
        self,
        config: Config,
        credential: Credential,
        token_acquirer: TokenAcquirer,
        rate_limiter: Optional[RateLimiter] = None,
        prometheus_exporter=None,
    ):
        """
        Wire the fetch pipeline around an already acquired credential.

        Args:
            config: Application configuration with Reddit credentials
            credential: Bearer credential for the transport
            token_acquirer: Acquirer used by :meth:`reauthenticate`
            rate_limiter: Limiter shared across transports (created if omitted)
            prometheus_exporter: Optional Prometheus metrics exporter
        """
        self.config = config
        self.token_acquirer = token_acquirer
        self.rate_limiter = rate_limiter or RateLimiter(config.rate_limit)
        self.prometheus_exporter = prometheus_exporter
        self._build_pipeline(credential)

    def _build_pipeline(self, credential: Credential) -> None:
        self.credential = credential
        self.transport = AuthenticatedTransport(
            credential,
            self.config.user_agent,
            self.rate_limiter,
            base_url=self.config.fetch.api_base_url,
            request_timeout_sec=self.config.fetch.request_timeout_sec,
            prometheus_exporter=self.prometheus_exporter,
        )
        self.listing_fetcher = ListingFetcher(self.transport, self.config.fetch, self.prometheus_exporter)
        self.thread_fetcher = ThreadFetcher(self.transport, self.config.fetch, self.prometheus_exporter)
        self.orchestrator = FetchOrchestrator(
            self.listing_fetcher,
            self.thread_fetcher,
            comment_timeout_sec=self.config.fetch.comment_timeout_sec,
            prometheus_exporter=self.prometheus_exporter,
        )

    @classmethod
    async def create(
        cls,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        user_agent: str,
        *,
        config: Optional[Config] = None,
        prometheus_exporter=None,
    ) -> "RedditClient":
        """
        Authenticate and build a ready-to-use client.

        Raises:
            AuthExhausted: If the token endpoint kept rate limiting us
            AuthError: If authentication failed for any other reason
        """
        config = replace(
            config or Config(),
            client_id=client_id,
            client_secret=client_secret,
            username=username,
            password=password,
            user_agent=user_agent,
        )

        logger.info("Initializing Reddit client")
        acquirer = TokenAcquirer(config.auth, user_agent, prometheus_exporter=prometheus_exporter)
        credential = await acquirer.acquire(client_id, client_secret, username, password)
        return cls(config, credential, acquirer, prometheus_exporter=prometheus_exporter)

    @classmethod
    async def from_config(cls, config: Config, prometheus_exporter=None) -> "RedditClient":
        """Authenticate using the credentials held in a Config."""
        return await cls.create(
            config.client_id,
            config.client_secret,
            config.username,
            config.password,
            config.user_agent,
            config=config,
            prometheus_exporter=prometheus_exporter,
        )

    async def reauthenticate(self, force: bool = False) -> Credential:
        """
        Acquire a fresh credential and rebuild the transport around it.

        The old transport is closed; the rate limiter carries over so pacing
        is not reset.

        Args:
            force: Refresh even if the current credential has not expired

        Returns:
            The credential now in use (unchanged when still valid and not forced)
        """
        if not force and not self.credential.is_expired():
            logger.debug("Credential still valid, keeping current transport")
            return self.credential

        credential = await self.token_acquirer.acquire(
            self.config.client_id,
            self.config.client_secret,
            self.config.username,
            self.config.password,
        )
        old_transport = self.transport
        self._build_pipeline(credential)
        await old_transport.close()
        logger.info("Re-authenticated Reddit client")
        return credential

    async def run_batch(
        self,
        collection: str,
        limit: int,
        window: Union[TimeWindow, str] = TimeWindow.ALL,
    ) -> FetchBatchResult:
        """Fetch the top posts of a subreddit with their comments."""
        return await self.orchestrator.run_batch(collection, limit, window)

    async def fetch_one(self, item_id: str) -> Item:
        """Fetch a single post with its comments."""
        return await self.thread_fetcher.fetch_one(item_id)

    async def close(self) -> None:
        """Close the Reddit client and release resources."""
        logger.info("Closing Reddit client")
        await self.transport.close()

    async def __aenter__(self) -> "RedditClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
