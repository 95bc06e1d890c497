"""Capabilities the CRUD engine needs from a resource."""

from typing import ClassVar, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


@runtime_checkable
class CrudModel(Protocol):
    """A value with an integer identifier and a wire name."""

    resource_name: ClassVar[str]

    @property
    def id(self) -> Optional[int]: ...

    def set_id(self, id: int) -> None: ...


@runtime_checkable
class ActiveToggler(Protocol):
    """A value with an active state that the server can flip."""

    def toggle_active(self) -> bool:
        """Flip the active state and return the new state."""
        ...


@runtime_checkable
class ActiveTogglerCrudModel(CrudModel, ActiveToggler, Protocol):
    """A toggleable resource."""


class Resource(BaseModel):
    """Base model for Harvest resources.

    Subclasses declare their wire name in ``resource_name``; it becomes the
    envelope key when the resource is sent to the server.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    resource_name: ClassVar[str] = ""

    id: Optional[int] = None

    def set_id(self, id: int) -> None:
        """Assign the server-issued identifier."""
        self.id = id


class ToggleableResource(Resource):
    """Resource whose active flag is stored in ``active_field``."""

    active_field: ClassVar[str] = "active"

    def toggle_active(self) -> bool:
        """Flip the active flag in place and return the new state."""
        state = not bool(getattr(self, self.active_field))
        setattr(self, self.active_field, state)
        return state
