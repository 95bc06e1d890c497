"""Task assignments of one project."""

from harvest_api.core.json_api import JsonApi
from harvest_api.core.models import TaskAssignment
from harvest_api.services.base import ResourceService


class TaskAssignmentService(ResourceService[TaskAssignment]):
    """Tasks assigned to the project ``project_id``."""

    resource_type = TaskAssignment

    def __init__(self, api: JsonApi, project_id: int):
        self.project_id = project_id
        super().__init__(api)

    def endpoint_path(self) -> str:
        return f"projects/{self.project_id}/task_assignments"
