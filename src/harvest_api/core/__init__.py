"""Core building blocks: envelope codec, query parameters, errors and the CRUD engine."""

from harvest_api.core.errors import (
    BadRequest,
    HarvestError,
    NotFound,
    RateLimitReached,
    ResponseError,
    is_not_found,
    is_rate_limit_reached,
    is_temporary,
)
from harvest_api.core.json_api import JsonApi
from harvest_api.core.params import InvoiceStatus, Params
from harvest_api.core.timeframe import Timeframe

__all__ = [
    "BadRequest",
    "HarvestError",
    "InvoiceStatus",
    "JsonApi",
    "NotFound",
    "Params",
    "RateLimitReached",
    "ResponseError",
    "Timeframe",
    "is_not_found",
    "is_rate_limit_reached",
    "is_temporary",
]
