"""Shared fakes and payload builders for the test-suite."""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock


class FakeResponse:
    """Minimal stand-in for ``aiohttp.ClientResponse`` used as an async context manager."""

    def __init__(self, status: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None,
                 body: Optional[str] = None):
        self.status = status
        self.headers = headers or {}
        self._body = body if body is not None else json.dumps(payload)

    async def json(self, content_type=None):
        return json.loads(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


def make_session(*responses) -> MagicMock:
    """Create a fake session whose get/post return the given responses in order."""
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    session.get = MagicMock(side_effect=list(responses))
    session.post = MagicMock(side_effect=list(responses))
    return session


def make_post(post_id: str, title: str = "AITA for testing?", is_self: bool = True, **extra) -> Dict[str, Any]:
    """Build the ``data`` object of a Reddit ``t3`` listing child."""
    data = {
        "id": post_id,
        "title": title,
        "url": f"https://www.reddit.com/r/AmItheAsshole/comments/{post_id}/",
        "score": 100,
        "created_utc": 1700000000.5,
        "author": "throwaway",
        "num_comments": 3,
        "selftext": "Long story...",
        "is_self": is_self,
        "subreddit": "AmItheAsshole",
    }
    data.update(extra)
    return data


def make_listing(posts: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": p} for p in posts]}}


def make_thread(post_id: str, bodies: List[str]) -> List[Dict[str, Any]]:
    """Build a ``[post_listing, comment_listing]`` thread response."""
    comments = [{"kind": "t1", "data": {"body": body}} for body in bodies]
    return [make_listing([make_post(post_id)]), {"kind": "Listing", "data": {"children": comments}}]
