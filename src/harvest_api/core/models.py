"""Harvest resource models.

Field names follow the JSON the Harvest API sends. Every resource declares
its envelope key in ``resource_name``.
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from harvest_api.core.resource import Resource, ToggleableResource
from harvest_api.core.timeframe import ShortDate, Timeframe, TimeframeField

# ============================================================================
# Toggleable resources
# ============================================================================


class User(ToggleableResource):
    """A person with access to the account.

    Attributes:
        id: Server-issued identifier
        email: Login email address
        first_name: Given name
        last_name: Family name
        is_active: Whether the user may log in
        is_admin: Whether the user administers the account
        is_contractor: Whether the user is a contractor
        default_hourly_rate: Rate used when the project bills by person
    """

    resource_name: ClassVar[str] = "user"
    active_field: ClassVar[str] = "is_active"

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    has_access_to_all_future_projects: bool = False
    default_hourly_rate: Optional[float] = None
    is_active: bool = False
    is_admin: bool = False
    is_contractor: bool = False
    telephone: Optional[str] = None
    department: Optional[str] = None
    timezone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Project(ToggleableResource):
    """A project billed to a client.

    ``bill_by`` is one of ``Tasks``, ``People`` or ``none``; ``budget_by`` one
    of ``project``, ``project_cost``, ``task``, ``person`` or ``none``. The
    hint dates are only refreshed by the server once a day.
    """

    resource_name: ClassVar[str] = "project"

    name: Optional[str] = None
    client_id: Optional[int] = None
    code: Optional[str] = None
    active: bool = False
    notes: Optional[str] = None
    billable: bool = False
    bill_by: Optional[str] = None
    hourly_rate: Optional[float] = None
    budget_by: Optional[str] = None
    budget: Optional[float] = None
    cost_budget: Optional[float] = None
    cost_budget_include_expenses: bool = False
    notify_when_over_budget: bool = False
    over_budget_notification_percentage: Optional[float] = None
    over_budget_notified_at: Optional[str] = None
    show_budget_to_all: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    hint_earliest_record_at: ShortDate = None
    hint_latest_record_at: ShortDate = None


class Client(ToggleableResource):
    """A customer projects and invoices belong to."""

    resource_name: ClassVar[str] = "client"

    name: Optional[str] = None
    active: bool = False
    currency: Optional[str] = None
    currency_symbol: Optional[str] = None
    details: Optional[str] = None
    highrise_id: Optional[int] = None
    cache_version: Optional[int] = None
    default_invoice_timeframe: TimeframeField = Field(default_factory=Timeframe)
    last_invoice_kind: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Plain resources
# ============================================================================


class Task(Resource):
    """A kind of work that can be assigned to projects."""

    resource_name: ClassVar[str] = "task"

    name: Optional[str] = None
    billable_by_default: bool = False
    deactivated: bool = False
    default_hourly_rate: Optional[float] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Invoice(Resource):
    """An invoice sent to a client.

    ``state`` holds one of the values of ``InvoiceStatus``.
    """

    resource_name: ClassVar[str] = "invoice"

    client_id: Optional[int] = None
    number: Optional[str] = None
    amount: Optional[float] = None
    due_amount: Optional[float] = None
    currency: Optional[str] = None
    state: Optional[str] = None
    subject: Optional[str] = None
    notes: Optional[str] = None
    purchase_order: Optional[str] = None
    issued_at: ShortDate = None
    due_at: ShortDate = None
    period_start: ShortDate = None
    period_end: ShortDate = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DayEntry(Resource):
    """Hours a user spent on a project task on one day."""

    resource_name: ClassVar[str] = "dayentry"

    user_id: Optional[int] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    hours: Optional[float] = None
    notes: Optional[str] = None
    spent_at: ShortDate = None
    is_billed: bool = False
    is_closed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskAssignment(Resource):
    """A task made available on a project."""

    resource_name: ClassVar[str] = "task-assignment"

    task_id: Optional[int] = None
    project_id: Optional[int] = None
    billable: bool = False
    deactivated: bool = False
    budget: Optional[float] = None
    hourly_rate: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Account
# ============================================================================


class Modules(BaseModel):
    """Optional Harvest modules enabled for the company."""

    model_config = ConfigDict(extra="ignore")

    expenses: bool = False
    invoices: bool = False
    estimates: bool = False
    approval: bool = False


class Company(BaseModel):
    """Company settings of the account.

    ``week_start_day`` is ``Sunday``, ``Saturday`` or ``Monday``;
    ``time_format`` is ``decimal`` or ``hours_minutes``; ``clock`` is ``12h``
    or ``24h``.
    """

    model_config = ConfigDict(extra="ignore")

    base_uri: Optional[str] = None
    full_domain: Optional[str] = None
    name: Optional[str] = None
    active: bool = False
    week_start_day: Optional[str] = None
    time_format: Optional[str] = None
    clock: Optional[str] = None
    decimal_symbol: Optional[str] = None
    thousands_separator: Optional[str] = None
    color_scheme: Optional[str] = None
    modules: Optional[Modules] = None


class Account(BaseModel):
    """Body of ``GET account/who_am_i``: the company and the calling user."""

    model_config = ConfigDict(extra="ignore")

    company: Optional[Company] = None
    user: Optional[User] = None
