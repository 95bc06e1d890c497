"""Tasks service."""

from harvest_api.core.models import Task
from harvest_api.services.base import ResourceService


class TaskService(ResourceService[Task]):
    resource_type = Task
    path = "tasks"
