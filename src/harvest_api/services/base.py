"""Generic resource services on top of the CRUD engine."""

from typing import ClassVar, Generic, Optional, TypeVar

from harvest_api.core.json_api import JsonApi
from harvest_api.core.params import ParamsLike
from harvest_api.core.resource import Resource, ToggleableResource

R = TypeVar("R", bound=Resource)
TR = TypeVar("TR", bound=ToggleableResource)


class ResourceService(Generic[R]):
    """List, find, create, update and delete one kind of resource.

    Subclasses fix ``resource_type`` and ``path``.
    """

    resource_type: ClassVar[type[Resource]]
    path: ClassVar[str] = ""

    def __init__(self, api: JsonApi):
        """Initialize the service.

        Args:
            api: Engine bound to the base URL; it is re-bound to this
                service's path
        """
        self.api = api.for_path(self.endpoint_path())

    def endpoint_path(self) -> str:
        return self.path

    def all(self, params: Optional[ParamsLike] = None) -> list[R]:
        """List resources, optionally filtered by query parameters."""
        return self.api.all(self.resource_type, params)  # type: ignore[return-value]

    def find(self, id: int, params: Optional[ParamsLike] = None) -> R:
        """Get one resource by identifier.

        Raises:
            NotFound: If no resource has this identifier
        """
        return self.api.find(self.resource_type, id, params)  # type: ignore[return-value]

    def create(self, resource: R) -> R:
        """Create a resource; its ``id`` is set from the server's answer."""
        return self.api.create(resource)

    def update(self, resource: R) -> None:
        self.api.update(resource)

    def delete(self, resource: R) -> None:
        self.api.delete(resource)


class TogglingResourceService(ResourceService[TR]):
    """Resource service that can also flip a resource's active state."""

    def toggle(self, resource: TR) -> bool:
        """Toggle ``resource`` at the server and in place.

        Returns:
            The new active state
        """
        return self.api.toggle(resource)
