"""Comment thread and single post retrieval."""

import logging
from typing import List

from aita_fetcher.config import FetchConfig
from aita_fetcher.exceptions import FetchError, InvalidArgument, ItemNotFound
from aita_fetcher.models.item import Item
from aita_fetcher.models.mapping import listing_to_items, thread_to_comments
from aita_fetcher.transport import AuthenticatedTransport

logger = logging.getLogger(__name__)


class ThreadFetcher:
    """Fetches comment threads and individual posts by id."""

    def __init__(self, transport: AuthenticatedTransport, config: FetchConfig, prometheus_exporter=None):
        self.transport = transport
        self.config = config
        self.prometheus_exporter = prometheus_exporter

    async def wait_turn(self) -> None:
        """Wait out the request spacing ahead of an unpaced :meth:`fetch_comments`."""
        await self.transport.pace()

    async def fetch_comments(self, item_id: str, paced: bool = True) -> List[str]:
        """
        Fetch the top-level comment bodies of a post.

        Args:
            item_id: Reddit base36 post id (without the ``t3_`` prefix)
            paced: Set to False after :meth:`wait_turn` so the request is sent at once

        Returns:
            Non-empty comment bodies in the order Reddit returned them

        Raises:
            MalformedResponse: If the thread envelope has fewer than two elements
            UpstreamError: On a non-2xx response
        """
        if not item_id:
            raise InvalidArgument("item id must not be empty")

        if self.prometheus_exporter:
            self.prometheus_exporter.record_fetch_operation("comments")

        payload = await self.transport.get_json(
            f"/comments/{item_id}",
            params={"limit": self.config.comment_limit},
            paced=paced,
        )
        comments = thread_to_comments(payload)
        logger.debug(f"Fetched {len(comments)} comments for {item_id}")
        return comments

    async def fetch_one(self, item_id: str) -> Item:
        """
        Fetch a single post by id, then try to attach its comments.

        A failure to fetch the post itself propagates; a failure to fetch its
        comments is logged and the post is returned without comments.

        Raises:
            ItemNotFound: If Reddit returns no post for the id
            UpstreamError: On a non-2xx response
            DecodeError: If the listing envelope cannot be decoded
        """
        if not item_id:
            raise InvalidArgument("item id must not be empty")

        if self.prometheus_exporter:
            self.prometheus_exporter.record_fetch_operation("item")

        payload = await self.transport.get_json(f"/by_id/t3_{item_id}")
        items = listing_to_items(payload)
        if not items:
            raise ItemNotFound(item_id)
        item = items[0]

        try:
            comments = await self.fetch_comments(item_id)
        except FetchError as e:
            logger.warning(f"Could not fetch comments for post {item_id}: {e}")
            if self.prometheus_exporter:
                self.prometheus_exporter.record_comment_degraded("error")
            return item

        return item.with_comments(comments)
