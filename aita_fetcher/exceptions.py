"""Exception hierarchy for the fetch pipeline."""

from typing import Optional


class FetchError(Exception):
    """Base class for every error raised by the fetch pipeline."""


class InvalidArgument(FetchError, ValueError):
    """Caller supplied a bad argument; no upstream request was issued."""


class AuthError(FetchError):
    """Credential acquisition failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        self.message = message
        # Keep the status code as the text prefix so rate limiting is
        # recognisable from the error string alone.
        text = f"{status} {message}" if status is not None else message
        super().__init__(text)


class AuthExhausted(AuthError):
    """Credential acquisition kept being rate limited until attempts ran out."""

    def __init__(self, attempts: int, last_error: Exception):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"failed to get token after {attempts} attempts: {last_error}",
            status=getattr(last_error, "status", None),
        )


class UpstreamError(FetchError):
    """Upstream API answered with a non-2xx status."""

    def __init__(self, status: int, url: str = ""):
        self.status = status
        self.url = url
        super().__init__(f"reddit API error {status} for {url}" if url else f"reddit API error {status}")


class ItemNotFound(UpstreamError):
    """Single-item lookup returned an empty listing."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(404, f"by_id/t3_{item_id}")


class DecodeError(FetchError):
    """Response body could not be decoded into the expected envelope."""


class MalformedResponse(DecodeError):
    """Response decoded as JSON but its structure is invalid."""


class TransportError(FetchError):
    """Network failure or request timeout before a response was received."""


class CommentFetchDegraded(FetchError):
    """
    Comment enrichment for one item failed or timed out.

    Never propagated out of the orchestrator; it is logged and counted and the
    item is returned without comments.
    """

    def __init__(self, item_id: str, reason: str, cause: Optional[BaseException] = None):
        self.item_id = item_id
        self.reason = reason
        self.cause = cause
        detail = f": {cause}" if cause is not None and str(cause) else ""
        super().__init__(f"comments for {item_id} degraded ({reason}){detail}")
