"""Short dates and timeframes used to filter listings."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator, PlainSerializer, PlainValidator

from harvest_api.core.params import Params

SHORT_DATE_FORMAT = "%Y-%m-%d"


def format_short_date(value: Optional[date]) -> str:
    """Format a date as ``YYYY-MM-DD``; unset dates become an empty string."""
    if value is None:
        return ""
    return value.strftime(SHORT_DATE_FORMAT)


def parse_short_date(value: Any) -> Optional[date]:
    """Parse a short date leniently.

    Dates and datetimes are truncated to the day. Empty or malformed strings
    yield None instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), SHORT_DATE_FORMAT).date()
        except ValueError:
            return None
    return None


def validate_short_date(value: Any) -> Optional[date]:
    """Decode a short date model field.

    Null and blank strings are unset; any other value must be a date or a
    ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the value is not a short date
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = parse_short_date(value)
    if parsed is None:
        raise ValueError(f"Invalid short date {value!r}, expected YYYY-MM-DD")
    return parsed


ShortDate = Annotated[
    Optional[date],
    BeforeValidator(validate_short_date),
    PlainSerializer(format_short_date, return_type=str),
]


@dataclass(frozen=True)
class Timeframe:
    """Day-granularity date interval.

    Attributes:
        start_date: First day of the interval (inclusive)
        end_date: Last day of the interval (inclusive)
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_zero(self) -> bool:
        """Check whether either bound is unset."""
        return self.start_date is None or self.end_date is None

    def contains(self, day: date) -> bool:
        """Check whether ``day`` lies inside the interval.

        An incomplete timeframe contains nothing.
        """
        if self.is_zero:
            return False
        if isinstance(day, datetime):
            day = day.date()
        return self.start_date <= day <= self.end_date  # type: ignore[operator]

    def to_string(self) -> str:
        """Serialize as ``"YYYY-MM-DD,YYYY-MM-DD"``.

        An incomplete timeframe serializes to ``""`` so that no partial range
        ever reaches the server.
        """
        if self.is_zero:
            return ""
        return f"{format_short_date(self.start_date)},{format_short_date(self.end_date)}"

    def __str__(self) -> str:
        return self.to_string()

    def to_query(self) -> Params:
        """Get ``from``/``to`` query parameters for this timeframe."""
        params = Params()
        if self.is_zero:
            return params
        params.set("from", format_short_date(self.start_date))
        params.set("to", format_short_date(self.end_date))
        return params

    @classmethod
    def parse(cls, value: Any) -> "Timeframe":
        """Parse ``"YYYY-MM-DD,YYYY-MM-DD"``; anything else yields an empty Timeframe."""
        if isinstance(value, Timeframe):
            return value
        if not isinstance(value, str):
            return cls()
        parts = value.split(",")
        if len(parts) != 2:
            return cls()
        start, end = parse_short_date(parts[0]), parse_short_date(parts[1])
        if start is None or end is None:
            return cls()
        return cls(start, end)

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "Timeframe":
        """Recover a timeframe from ``from``/``to`` query parameters.

        Args:
            params: Params or mapping of key to value(s)

        Raises:
            ValueError: If a bound is missing or malformed
        """
        bounds = []
        for key in ("from", "to"):
            raw = params.get(key) if hasattr(params, "get") else None
            if isinstance(raw, (list, tuple)):
                raw = raw[0] if raw else None
            if not raw:
                raise ValueError(f"Missing '{key}' query parameter")
            parsed = parse_short_date(raw)
            if parsed is None:
                raise ValueError(f"Malformed '{key}' query parameter: {raw!r}")
            bounds.append(parsed)
        return cls(bounds[0], bounds[1])

    @classmethod
    def since(cls, start: date) -> "Timeframe":
        """Create a timeframe from ``start`` until today."""
        return cls(parse_short_date(start), date.today())


TimeframeField = Annotated[
    Timeframe,
    PlainValidator(Timeframe.parse),
    PlainSerializer(Timeframe.to_string, return_type=str),
]
