"""Users service (``people`` endpoint)."""

from harvest_api.core.models import User
from harvest_api.services.base import TogglingResourceService


class UserService(TogglingResourceService[User]):
    resource_type = User
    path = "people"
