"""Projects service."""

from datetime import datetime
from typing import Optional

from harvest_api.core.models import Project
from harvest_api.core.params import Params
from harvest_api.services.base import TogglingResourceService


class ProjectService(TogglingResourceService[Project]):
    resource_type = Project
    path = "projects"

    def all_updated_since(self, updated_since: Optional[datetime] = None) -> list[Project]:
        """List projects changed after ``updated_since``.

        Args:
            updated_since: Lower bound; None lists every project

        Returns:
            Matching projects
        """
        params = Params()
        if updated_since is not None:
            params.updated_since(updated_since)
        return self.all(params)
