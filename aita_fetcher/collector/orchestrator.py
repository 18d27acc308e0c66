"""Batch orchestration: listing retrieval followed by per-post comment enrichment."""

import asyncio
import logging
from typing import List, Optional, Tuple, Union

from aita_fetcher.collector.listing import ListingFetcher
from aita_fetcher.collector.thread import ThreadFetcher
from aita_fetcher.exceptions import CommentFetchDegraded, FetchError
from aita_fetcher.models.item import FetchBatchResult, Item, TimeWindow

logger = logging.getLogger(__name__)


class FetchOrchestrator:
    """
    Runs one fetch batch for a subreddit.

    Posts are enriched one after another so that at most one upstream request
    is in flight. Before each comment fetch the orchestrator waits on the
    transport's rate limiter; the fetch then runs as its own task raced
    against a timeout, and a slow or failing fetch only costs that post its
    comments.
    """

    def __init__(
        self,
        listing_fetcher: ListingFetcher,
        thread_fetcher: ThreadFetcher,
        comment_timeout_sec: float = 5.0,
        prometheus_exporter=None,
    ):
        """
        Initialize the orchestrator.

        Args:
            listing_fetcher: Fetcher for subreddit top listings
            thread_fetcher: Fetcher for comment threads
            comment_timeout_sec: Time budget for each post's comment fetch
            prometheus_exporter: Optional Prometheus metrics exporter
        """
        self.listing_fetcher = listing_fetcher
        self.thread_fetcher = thread_fetcher
        self.comment_timeout_sec = comment_timeout_sec
        self.prometheus_exporter = prometheus_exporter

    async def run_batch(
        self,
        collection: str,
        limit: int,
        window: Union[TimeWindow, str],
    ) -> FetchBatchResult:
        """
        Fetch the top posts of a subreddit and attach their comments.

        Listing errors propagate unchanged. Comment errors and timeouts are
        logged and the affected posts are returned without comments.

        Args:
            collection: Subreddit name
            limit: Maximum number of posts
            window: Listing time window

        Returns:
            Batch with every retained post, in listing order
        """
        items = await self.listing_fetcher.fetch_top(collection, limit, window)

        enriched: List[Item] = []
        degraded: List[str] = []
        for item in items:
            result, failure = await self._enrich(item)
            enriched.append(result)
            if failure is not None:
                self._record_degraded(failure)
                degraded.append(item.id)

        if self.prometheus_exporter:
            self.prometheus_exporter.record_items_fetched(collection, len(enriched))

        logger.info(
            f"Fetched {len(enriched)} posts from r/{collection} "
            f"({len(degraded)} without comments)"
        )
        return FetchBatchResult(
            collection=collection,
            count=len(enriched),
            items=tuple(enriched),
            degraded=tuple(degraded),
        )

    async def _enrich(self, item: Item) -> Tuple[Item, Optional[CommentFetchDegraded]]:
        """Wait for the rate limiter, then race one comment fetch against the timeout."""
        # Pacing stays outside the race so the budget covers only the request
        await self.thread_fetcher.wait_turn()
        task = asyncio.create_task(self.thread_fetcher.fetch_comments(item.id, paced=False))
        try:
            # wait_for cancels the task when the timeout fires
            comments = await asyncio.wait_for(task, timeout=self.comment_timeout_sec)
        except asyncio.TimeoutError as e:
            return item, CommentFetchDegraded(item.id, "timeout", e)
        except FetchError as e:
            return item, CommentFetchDegraded(item.id, "error", e)
        return item.with_comments(comments), None

    def _record_degraded(self, failure: CommentFetchDegraded) -> None:
        if failure.reason == "timeout":
            logger.warning(f"Timeout fetching comments for {failure.item_id} "
                           f"after {self.comment_timeout_sec:.1f}s")
        else:
            logger.warning(f"Error fetching comments for {failure.item_id}: {failure.cause}")
        if self.prometheus_exporter:
            self.prometheus_exporter.record_comment_degraded(failure.reason)
