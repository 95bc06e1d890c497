"""Query parameter builder for resource listings."""

import copy
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union
from urllib.parse import parse_qsl, urlencode

if TYPE_CHECKING:
    from harvest_api.core.timeframe import Timeframe

ParamsLike = Union["Params", Mapping[str, Union[str, Iterable[str]]]]

UPDATED_SINCE_FORMAT = "%Y-%m-%d %H:%M:%S"


class InvoiceStatus(str, Enum):
    """Invoice states recognized by the server.

    open    - sent to the client but no payment received
    partial - a partial payment was recorded
    draft   - not sent to a client, no payments recorded
    paid    - paid in full
    unpaid  - unpaid invoices
    pastdue - past due invoices
    """

    OPEN = "open"
    PARTIAL = "partial"
    DRAFT = "draft"
    PAID = "paid"
    UNPAID = "unpaid"
    PASTDUE = "pastdue"


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


class Params:
    """Multi-valued query parameters with chainable filter helpers.

    A fresh ``Params()`` is empty and ready to use. Every helper mutates the
    receiver and returns it, so filters can be chained::

        params = Params().for_timeframe(timeframe).billable(True).page(2)
    """

    def __init__(self, values: Optional[ParamsLike] = None):
        """Initialize parameters.

        Args:
            values: Optional initial values; each key maps to a string or a
                sequence of strings
        """
        self._values: dict[str, list[str]] = {}
        if values:
            self.merge(values)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def get(self, key: str) -> str:
        """Get the first value for ``key``, or an empty string."""
        values = self._values.get(key)
        if not values:
            return ""
        return values[0]

    def get_all(self, key: str) -> list[str]:
        """Get every value for ``key`` in insertion order."""
        return list(self._values.get(key, []))

    def set(self, key: str, value: str) -> "Params":
        """Replace all values for ``key`` with ``value``."""
        self._values[key] = [value]
        return self

    def add(self, key: str, value: str) -> "Params":
        """Append ``value`` to the values for ``key``."""
        self._values.setdefault(key, []).append(value)
        return self

    def delete(self, key: str) -> "Params":
        """Remove all values for ``key``."""
        self._values.pop(key, None)
        return self

    def merge(self, other: ParamsLike) -> "Params":
        """Append every value of ``other`` to the receiver.

        Existing values are kept; this is a union, not a replacement.
        """
        for key, values in other.items():
            if isinstance(values, str):
                values = [values]
            for value in values:
                self.add(key, value)
        return self

    def clone(self) -> "Params":
        """Create an independent deep copy."""
        cloned = Params()
        cloned._values = copy.deepcopy(self._values)
        return cloned

    def encode(self) -> str:
        """Render as ``key=value&...`` with keys sorted."""
        pairs = [(key, value) for key in sorted(self._values) for value in self._values[key]]
        return urlencode(pairs)

    @classmethod
    def decode(cls, query: str) -> "Params":
        """Parse a ``key=value&...`` query string."""
        params = cls()
        for key, value in parse_qsl(query, keep_blank_values=True):
            params.add(key, value)
        return params

    def to_dict(self) -> dict[str, list[str]]:
        """Get a plain copy of the underlying mapping."""
        return copy.deepcopy(self._values)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for key, values in self._values.items():
            yield key, list(values)

    def keys(self) -> Iterator[str]:
        return iter(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Params):
            return self._values == other._values
        return NotImplemented

    def __repr__(self) -> str:
        return f"Params({self._values!r})"

    # ------------------------------------------------------------------
    # Filter helpers
    # ------------------------------------------------------------------

    def for_timeframe(self, timeframe: "Timeframe") -> "Params":
        """Add ``from``/``to`` for the given timeframe."""
        return self.merge(timeframe.to_query())

    def billable(self, billable: bool) -> "Params":
        return self.set("billable", _yes_no(billable))

    def only_billed(self) -> "Params":
        return self.set("only_billed", "yes")

    def only_unbilled(self) -> "Params":
        return self.set("only_unbilled", "yes")

    def is_closed(self, closed: bool) -> "Params":
        return self.set("is_closed", _yes_no(closed))

    def updated_since(self, moment: datetime) -> "Params":
        """Only include records updated after ``moment``.

        Naive datetimes are taken as UTC.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return self.set("updated_since", moment.astimezone(timezone.utc).strftime(UPDATED_SINCE_FORMAT))

    def page(self, page: int) -> "Params":
        return self.set("page", str(int(page)))

    def status(self, status: Union[str, InvoiceStatus]) -> "Params":
        """Filter invoices by status.

        The value is passed through unvalidated; see InvoiceStatus for the
        values the server knows.
        """
        if isinstance(status, InvoiceStatus):
            status = status.value
        return self.set("status", status)

    def for_project(self, project: Any) -> "Params":
        return self.set("project_id", str(project.id))

    def for_user(self, user: Any) -> "Params":
        return self.set("user_id", str(user.id))

    def by_client(self, client: Any) -> "Params":
        return self.set("client", str(client.id))
