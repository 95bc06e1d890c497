"""Python client for the Harvest time-tracking REST API."""

__version__ = "0.1.0"

from harvest_api.client import Harvest, parse_subdomain  # noqa: E402
from harvest_api.core.errors import (  # noqa: E402
    BadRequest,
    HarvestError,
    NotFound,
    RateLimitReached,
    ResponseError,
    is_not_found,
    is_rate_limit_reached,
    is_temporary,
)
from harvest_api.core.models import (  # noqa: E402
    Account,
    Client,
    DayEntry,
    Invoice,
    Project,
    Task,
    TaskAssignment,
    User,
)
from harvest_api.core.params import InvoiceStatus, Params  # noqa: E402
from harvest_api.core.timeframe import Timeframe  # noqa: E402

__all__ = [
    "Account",
    "BadRequest",
    "Client",
    "DayEntry",
    "Harvest",
    "HarvestError",
    "Invoice",
    "InvoiceStatus",
    "NotFound",
    "Params",
    "Project",
    "RateLimitReached",
    "ResponseError",
    "Task",
    "TaskAssignment",
    "Timeframe",
    "User",
    "is_not_found",
    "is_rate_limit_reached",
    "is_temporary",
    "parse_subdomain",
]
