"""Resource services, one per Harvest endpoint."""

from harvest_api.services.base import ResourceService, TogglingResourceService
from harvest_api.services.clients import ClientService
from harvest_api.services.day_entries import DayEntryService
from harvest_api.services.invoices import InvoiceService
from harvest_api.services.projects import ProjectService
from harvest_api.services.task_assignments import TaskAssignmentService
from harvest_api.services.tasks import TaskService
from harvest_api.services.users import UserService

__all__ = [
    "ClientService",
    "DayEntryService",
    "InvoiceService",
    "ProjectService",
    "ResourceService",
    "TaskAssignmentService",
    "TaskService",
    "TogglingResourceService",
    "UserService",
]
