"""Top-listing retrieval and filtering for a subreddit."""

import logging
from typing import List, Sequence, Union

from aita_fetcher.config import FetchConfig
from aita_fetcher.exceptions import InvalidArgument
from aita_fetcher.models.item import Item, TimeWindow
from aita_fetcher.models.mapping import listing_to_items
from aita_fetcher.transport import AuthenticatedTransport

logger = logging.getLogger(__name__)


class ListingFetcher:
    """Fetches the top posts of a subreddit and keeps only user-written text posts."""

    def __init__(self, transport: AuthenticatedTransport, config: FetchConfig, prometheus_exporter=None):
        """
        Initialize the listing fetcher.

        Args:
            transport: Authenticated transport for API requests
            config: Fetch configuration (overfetch margin, meta markers)
            prometheus_exporter: Optional Prometheus metrics exporter
        """
        self.transport = transport
        self.config = config
        self.prometheus_exporter = prometheus_exporter

    def is_meta_thread(self, item: Item) -> bool:
        """Return True for moderator threads such as open forums or monthly discussions."""
        title = item.title.lower()
        return any(marker.lower() in title for marker in self.config.meta_markers)

    def filter_items(self, items: Sequence[Item], limit: int) -> List[Item]:
        """
        Keep self posts that are not meta threads, in upstream order, up to ``limit``.
        """
        retained: List[Item] = []
        for item in items:
            if self.is_meta_thread(item):
                logger.debug(f"Skipping meta thread {item.id}: {item.title[:50]}")
                continue
            if not item.is_self:
                logger.debug(f"Skipping link post {item.id}")
                continue
            retained.append(item)
            if len(retained) >= limit:
                break
        return retained

    async def fetch_top(
        self,
        collection: str,
        limit: int,
        window: Union[TimeWindow, str],
    ) -> List[Item]:
        """
        Fetch the top posts of a subreddit over a time window.

        Args:
            collection: Subreddit name
            limit: Maximum number of posts to return
            window: One of hour, day, week, month, year, all

        Returns:
            Up to ``limit`` filtered posts without comments

        Raises:
            InvalidArgument: If the window or limit is invalid (no request is made)
            UpstreamError: On a non-2xx response
            DecodeError: If the listing envelope cannot be decoded
        """
        time_window = TimeWindow.parse(window)
        if limit <= 0:
            raise InvalidArgument(f"limit must be greater than 0, got {limit}")
        if not collection:
            raise InvalidArgument("collection must not be empty")

        # Ask for a few extra posts since filtering may discard some
        api_limit = limit + self.config.overfetch
        logger.info(f"Fetching top {api_limit} posts from r/{collection} (t={time_window.value})")

        if self.prometheus_exporter:
            self.prometheus_exporter.record_fetch_operation("listing")

        payload = await self.transport.get_json(
            f"/r/{collection}/top",
            params={"limit": api_limit, "t": time_window.value, "raw_json": 1},
        )
        items = listing_to_items(payload)
        retained = self.filter_items(items, limit)

        if len(retained) < limit:
            logger.info(f"Only {len(retained)} of {limit} requested posts survived filtering in r/{collection}")
        return retained
