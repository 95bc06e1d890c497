"""In-memory storage behind the mock Harvest server."""

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]

from harvest_api.core.models import (
    Account,
    Client,
    Company,
    DayEntry,
    Invoice,
    Project,
    Task,
    TaskAssignment,
    User,
)
from harvest_api.core.resource import Resource, ToggleableResource
from harvest_api.core.timeframe import Timeframe

logger = logging.getLogger(__name__)

RESOURCE_TYPES: dict[str, type[Resource]] = {
    "people": User,
    "projects": Project,
    "clients": Client,
    "tasks": Task,
    "invoices": Invoice,
    "entries": DayEntry,
    "task_assignments": TaskAssignment,
}


class Collection:
    """Resources of one kind, keyed by identifier."""

    def __init__(self, resource_type: type[Resource]):
        self.resource_type = resource_type
        self.items: dict[int, Resource] = {}
        self._next_id = 1

    def add(self, resource: Resource) -> Resource:
        """Store a copy of ``resource``, issuing an identifier if it has none."""
        stored = resource.model_copy(deep=True)
        if stored.id is None:
            stored.id = self._next_id
        self.items[stored.id] = stored
        self._next_id = max(self._next_id, stored.id + 1)
        return stored.model_copy(deep=True)

    def get(self, id: int) -> Optional[Resource]:
        stored = self.items.get(id)
        return stored.model_copy(deep=True) if stored is not None else None

    def values(self) -> list[Resource]:
        return [stored.model_copy(deep=True) for stored in self.items.values()]


class MockStore:
    """Thread-safe in-memory Harvest account.

    Nested resources (day entries, task assignments) live in flat collections
    and are scoped by their ``user_id``/``project_id``.

    Attributes:
        account: Body served by ``account/who_am_i``
        billable_tasks: Task ids whose entries count as billable
        retry_after: Seconds announced while throttled, None when not throttled
    """

    def __init__(self, account: Optional[Account] = None, billable_tasks: Optional[list[int]] = None):
        self._lock = threading.Lock()
        self.collections = {kind: Collection(rtype) for kind, rtype in RESOURCE_TYPES.items()}
        self.account = account or Account(company=Company(name="Mock Company", active=True))
        self.billable_tasks: set[int] = set(billable_tasks or [])
        self.retry_after: Optional[int] = None

    # ------------------------------------------------------------------
    # Throttling
    # ------------------------------------------------------------------

    def throttle(self, retry_after: int = 15) -> None:
        """Answer every request with 429 until ``unthrottle`` is called."""
        with self._lock:
            self.retry_after = retry_after
        logger.info(f"Mock store throttled (Retry-After: {retry_after})")

    def unthrottle(self) -> None:
        with self._lock:
            self.retry_after = None

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def _collection(self, kind: str) -> Collection:
        try:
            return self.collections[kind]
        except KeyError:
            raise LookupError(f"Unknown resource kind: {kind}") from None

    def resource_type(self, kind: str) -> type[Resource]:
        return self._collection(kind).resource_type

    @staticmethod
    def _in_scope(resource: Resource, scope: Optional[dict[str, int]]) -> bool:
        return all(getattr(resource, key, None) == value for key, value in (scope or {}).items())

    @staticmethod
    def _updated_after(resource: Resource, moment: datetime) -> bool:
        updated_at = getattr(resource, "updated_at", None)
        if updated_at is None:
            return False
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return updated_at > moment

    @staticmethod
    def _touch(resource: Resource) -> None:
        if hasattr(resource, "updated_at"):
            resource.updated_at = datetime.now(timezone.utc)  # type: ignore[attr-defined]

    def add(self, kind: str, resource: Resource) -> Resource:
        """Store ``resource`` without validation (used for seeding)."""
        with self._lock:
            return self._collection(kind).add(resource)

    def all(
        self,
        kind: str,
        scope: Optional[dict[str, int]] = None,
        updated_since: Optional[datetime] = None,
    ) -> list[Resource]:
        """List stored resources of ``kind``.

        Args:
            kind: Collection name (``people``, ``projects``, ...)
            scope: Attribute values every listed resource must have
            updated_since: Keep only resources updated strictly after this
                moment; naive datetimes are taken as UTC
        """
        if updated_since is not None and updated_since.tzinfo is None:
            updated_since = updated_since.replace(tzinfo=timezone.utc)
        with self._lock:
            resources = [r for r in self._collection(kind).values() if self._in_scope(r, scope)]
        if updated_since is None:
            return resources
        return [r for r in resources if self._updated_after(r, updated_since)]

    def find(self, kind: str, id: int, scope: Optional[dict[str, int]] = None) -> Optional[Resource]:
        with self._lock:
            resource = self._collection(kind).get(id)
        if resource is None or not self._in_scope(resource, scope):
            return None
        return resource

    def create(self, kind: str, resource: Resource, scope: Optional[dict[str, int]] = None) -> Resource:
        """Store a new resource; the store issues the identifier.

        Raises:
            ValueError: If the resource violates a business rule
        """
        self._check(resource)
        resource = resource.model_copy(update={"id": None, **(scope or {})})
        with self._lock:
            created = self._collection(kind).add(resource)
        logger.debug(f"Created {kind}/{created.id}")
        return created

    def update(
        self, kind: str, id: int, resource: Resource, scope: Optional[dict[str, int]] = None
    ) -> bool:
        """Replace the resource ``id``. Returns False if it does not exist."""
        self._check(resource)
        with self._lock:
            collection = self._collection(kind)
            current = collection.items.get(id)
            if current is None or not self._in_scope(current, scope):
                return False
            updated = resource.model_copy(update={"id": id, **(scope or {})}, deep=True)
            self._touch(updated)
            collection.items[id] = updated
        return True

    def delete(self, kind: str, id: int, scope: Optional[dict[str, int]] = None) -> bool:
        with self._lock:
            collection = self._collection(kind)
            current = collection.items.get(id)
            if current is None or not self._in_scope(current, scope):
                return False
            del collection.items[id]
        return True

    def toggle(self, kind: str, id: int, scope: Optional[dict[str, int]] = None) -> Optional[bool]:
        """Flip the active state of resource ``id``.

        Returns:
            The new state, or None if the resource does not exist

        Raises:
            ValueError: If the kind has no active state
        """
        if not issubclass(self.resource_type(kind), ToggleableResource):
            raise ValueError(f"{kind} cannot be toggled")
        with self._lock:
            current = self._collection(kind).items.get(id)
            if current is None or not self._in_scope(current, scope):
                return None
            state = current.toggle_active()  # type: ignore[attr-defined]
            self._touch(current)
            return state

    def _check(self, resource: Resource) -> None:
        if isinstance(resource, User) and not resource.email:
            raise ValueError("Email can't be blank")
        if isinstance(resource, (Project, Client, Task)) and not resource.name:
            raise ValueError("Name can't be blank")
        if isinstance(resource, Project) and resource.client_id is not None:
            if self.find("clients", resource.client_id) is None:
                raise ValueError(f"Client {resource.client_id} does not exist")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def day_entries(
        self, user_id: int, timeframe: Timeframe, billable: Optional[bool] = None
    ) -> list[DayEntry]:
        """List a user's entries spent inside ``timeframe``.

        Args:
            user_id: Owner of the entries
            timeframe: Inclusive date range
            billable: Keep only entries on billable (True) or non-billable
                (False) tasks; None keeps both
        """
        entries = []
        for entry in self.all("entries", {"user_id": user_id}):
            spent_at = getattr(entry, "spent_at", None)
            if spent_at is None or not timeframe.contains(spent_at):
                continue
            if billable is not None and (getattr(entry, "task_id", None) in self.billable_tasks) != billable:
                continue
            entries.append(entry)  # type: ignore[arg-type]
        return entries

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MockStore":
        """Create a store from seed data.

        Args:
            data: Mapping with optional ``account`` and ``billable_tasks`` keys
                plus one list of resource bodies per kind (``people``,
                ``projects``, ``entries``, ...)

        Raises:
            ValueError: If the seed contains unknown kinds or invalid bodies
        """
        data = dict(data)
        account_data = data.pop("account", None)
        account = Account.model_validate(account_data) if account_data else None
        store = cls(account=account, billable_tasks=data.pop("billable_tasks", None))
        for kind, bodies in data.items():
            if kind not in RESOURCE_TYPES:
                raise ValueError(f"Unknown resource kind in seed: {kind}")
            for body in bodies or []:
                store.add(kind, RESOURCE_TYPES[kind].model_validate(body))
        return store

    @classmethod
    def load(cls, path: Path) -> "MockStore":
        """Create a store from a YAML seed file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Seed file {path} must contain a mapping")
        store = cls.from_dict(data)
        logger.info(f"Mock store seeded from {path}")
        return store
