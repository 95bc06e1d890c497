"""Clients service."""

from harvest_api.core.models import Client
from harvest_api.services.base import TogglingResourceService


class ClientService(TogglingResourceService[Client]):
    resource_type = Client
    path = "clients"
