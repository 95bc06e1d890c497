"""Invoices service."""

from typing import Union

from harvest_api.core.models import Invoice
from harvest_api.core.params import InvoiceStatus, Params
from harvest_api.services.base import ResourceService


class InvoiceService(ResourceService[Invoice]):
    resource_type = Invoice
    path = "invoices"

    def all_with_status(self, status: Union[str, InvoiceStatus]) -> list[Invoice]:
        """List invoices in the given state."""
        return self.all(Params().status(status))
