"""Data models for fetched Reddit posts and fetch batches."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Tuple, Union

from aita_fetcher.exceptions import InvalidArgument


class TimeWindow(str, Enum):
    """Time windows accepted by the ``top`` listing endpoint."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"

    @classmethod
    def parse(cls, value: Union["TimeWindow", str]) -> "TimeWindow":
        """
        Resolve a window from an enum member or its string value.

        Raises:
            InvalidArgument: If the value is not a known window
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgument(f"invalid time filter: {value}") from None


@dataclass(frozen=True)
class Item:
    """
    A Reddit post normalised for downstream judgment workflows.

    ``comments`` is empty until thread retrieval succeeds and never holds an
    empty string.
    """

    id: str
    title: str
    url: str = ""
    score: int = 0
    created_utc: float = 0.0
    author: str = ""
    num_comments: int = 0
    selftext: str = ""
    is_self: bool = False
    subreddit: str = ""
    comments: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        comments = tuple(self.comments)
        if any(comment == "" for comment in comments):
            raise ValueError("comments must not contain empty strings")
        object.__setattr__(self, "comments", comments)

    def with_comments(self, comments: Iterable[str]) -> "Item":
        """Return a copy with the given comment bodies attached (empty bodies dropped)."""
        return replace(self, comments=tuple(c for c in comments if c))

    def to_dict(self) -> Dict[str, Any]:
        """Render the item in the JSON shape served to callers."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "score": self.score,
            "created_utc": self.created_utc,
            "author": self.author,
            "num_comments": self.num_comments,
            "selftext": self.selftext,
            "is_self": self.is_self,
            "subreddit": self.subreddit,
            "comments": list(self.comments),
        }


@dataclass(frozen=True)
class FetchBatchResult:
    """Outcome of one orchestrated fetch: the listing plus whatever comments arrived."""

    collection: str
    count: int
    items: Tuple[Item, ...]
    degraded: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subreddit": self.collection,
            "count": self.count,
            "results": [item.to_dict() for item in self.items],
        }
