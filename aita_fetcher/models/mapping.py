"""Mapping functions to convert Reddit API JSON envelopes to our data models."""

import logging
from typing import Any, Dict, List

from aita_fetcher.exceptions import DecodeError, MalformedResponse
from aita_fetcher.models.item import Item

logger = logging.getLogger(__name__)


def post_to_item(data: Dict[str, Any]) -> Item:
    """
    Convert the ``data`` object of a Reddit ``t3`` listing child to an Item.

    Args:
        data: Raw post fields as returned by the Reddit API

    Returns:
        Item without comments

    Raises:
        DecodeError: If the post has no id or fields have the wrong type
    """
    if not isinstance(data, dict):
        raise DecodeError(f"expected post object, got {type(data).__name__}")

    post_id = data.get("id")
    if not isinstance(post_id, str) or not post_id:
        raise DecodeError("post is missing its id")

    try:
        return Item(
            id=post_id,
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            score=int(data.get("score") or 0),
            created_utc=float(data.get("created_utc") or 0.0),
            author=str(data.get("author") or ""),
            num_comments=int(data.get("num_comments") or 0),
            selftext=str(data.get("selftext") or ""),
            is_self=bool(data.get("is_self", False)),
            subreddit=str(data.get("subreddit") or ""),
        )
    except (TypeError, ValueError) as e:
        raise DecodeError(f"failed to decode post {post_id}: {e}") from e


def listing_children(payload: Any) -> List[Dict[str, Any]]:
    """
    Extract the child ``data`` objects from a listing envelope.

    The envelope shape is ``{"data": {"children": [{"data": {...}}, ...]}}``.

    Raises:
        DecodeError: If the payload does not match the envelope shape
    """
    try:
        children = payload["data"]["children"]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"failed to decode listing: missing {e}") from e

    if not isinstance(children, list):
        raise DecodeError("failed to decode listing: children is not a list")

    result = []
    for child in children:
        if not isinstance(child, dict) or not isinstance(child.get("data"), dict):
            raise DecodeError("failed to decode listing: child without data")
        result.append(child["data"])
    return result


def listing_to_items(payload: Any) -> List[Item]:
    """Convert a whole listing envelope to Items, preserving upstream order."""
    return [post_to_item(data) for data in listing_children(payload)]


def thread_to_comments(payload: Any) -> List[str]:
    """
    Flatten the comment tree of a thread response into comment bodies.

    The thread response is ``[post_listing, comment_listing]``. Only the
    top-level nodes of the comment listing are read; nodes without a body
    ("more" stubs) or with an empty body (removed comments) are skipped.

    Raises:
        MalformedResponse: If the response is not a two-element envelope
    """
    if not isinstance(payload, list) or len(payload) < 2:
        raise MalformedResponse("invalid comments response structure")

    try:
        children = payload[1]["data"]["children"]
    except (KeyError, TypeError) as e:
        raise MalformedResponse(f"failed to parse comments: missing {e}") from e

    if not isinstance(children, list):
        raise MalformedResponse("failed to parse comments: children is not a list")

    comments = []
    for child in children:
        data = child.get("data") if isinstance(child, dict) else None
        if not isinstance(data, dict):
            logger.debug("Skipping undecodable comment node")
            continue
        body = data.get("body")
        if isinstance(body, str) and body:
            comments.append(body)
    return comments
