"""Error taxonomy and response classification.

Failures the server explains are raised as one of the HarvestError
subclasses below. Callers should query behaviour through the capability
helpers (``is_not_found``, ``is_rate_limit_reached``, ``is_temporary``)
instead of checking concrete classes.

Transport failures (``httpx.HTTPError`` or anything the injected client
raises) and decode failures (``json.JSONDecodeError``,
``pydantic.ValidationError``) are never wrapped.
"""

from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx
from pydantic import BaseModel

HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVICE_UNAVAILABLE = 503


class ErrorPayload(BaseModel):
    """Error body sent by the server: ``{"message": "..."}``."""

    message: Optional[str] = None


class HarvestError(Exception):
    """Base class for classified API failures."""

    default_message = "Harvest error"
    not_found = False
    rate_limit_reached = False
    temporary = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(HarvestError):
    """The requested resource does not exist."""

    default_message = "Not found"
    not_found = True


class RateLimitReached(HarvestError):
    """The server throttled the request.

    The only temporary failure: it may be retried once ``retry_after`` has
    elapsed. Nothing in this package retries on its own.
    """

    default_message = "Rate limit reached"
    rate_limit_reached = True
    temporary = True

    def __init__(self, message: Optional[str] = None, retry_after: Optional[timedelta] = None):
        super().__init__(message)
        self.retry_after = retry_after if retry_after is not None else timedelta(0)


class ResponseError(HarvestError):
    """Business-rule failure explained by the server."""

    default_message = "Response error"

    def __init__(self, payload: Optional[ErrorPayload] = None, status_code: Optional[int] = None):
        self.payload = payload or ErrorPayload()
        self.status_code = status_code
        super().__init__(self.payload.message)


class BadRequest(HarvestError):
    """The request or the server's answer violates the API contract."""

    default_message = "Bad request!"


def is_not_found(err: BaseException) -> bool:
    """Check whether ``err`` reports a missing resource."""
    return bool(getattr(err, "not_found", False))


def is_rate_limit_reached(err: BaseException) -> bool:
    """Check whether ``err`` reports throttling."""
    return bool(getattr(err, "rate_limit_reached", False))


def is_temporary(err: BaseException) -> bool:
    """Check whether ``err`` may succeed when retried later."""
    return bool(getattr(err, "temporary", False))


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> timedelta:
    """Parse a ``Retry-After`` header value.

    Accepts delta-seconds or an HTTP date. Missing or unparseable values
    yield zero.
    """
    if not value:
        return timedelta(0)
    value = value.strip()
    if value.isdigit():
        return timedelta(seconds=int(value))
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return timedelta(0)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = when - (now or datetime.now(timezone.utc))
    return max(delta, timedelta(0))


def _lenient_message(content: bytes) -> Optional[str]:
    if not content.strip():
        return None
    try:
        return ErrorPayload.model_validate_json(content).message
    except ValueError:
        return None


def is_rate_limited_response(response: httpx.Response) -> bool:
    """Check whether a response is the server's throttling signal."""
    if response.status_code == HTTP_TOO_MANY_REQUESTS:
        return True
    return response.status_code == HTTP_SERVICE_UNAVAILABLE and "Retry-After" in response.headers


def classify_error(response: httpx.Response) -> HarvestError:
    """Turn an unsuccessful response into exactly one HarvestError.

    Args:
        response: Response the caller did not accept as success

    Returns:
        NotFound, RateLimitReached or ResponseError

    Raises:
        pydantic.ValidationError: If a generic failure carries no error payload
    """
    if response.status_code == HTTP_NOT_FOUND:
        return NotFound(_lenient_message(response.content))
    if is_rate_limited_response(response):
        return RateLimitReached(
            _lenient_message(response.content),
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )
    payload = ErrorPayload.model_validate_json(response.content)
    return ResponseError(payload, status_code=response.status_code)

