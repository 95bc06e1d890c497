"""Day entries of one user."""

import logging
from typing import Optional

from harvest_api.core.errors import BadRequest
from harvest_api.core.json_api import JsonApi
from harvest_api.core.models import DayEntry
from harvest_api.core.params import Params, ParamsLike
from harvest_api.services.base import ResourceService

logger = logging.getLogger(__name__)

MISSING_RANGE_MESSAGE = "Bad Request: 'from' and 'to' query parameter are not optional!"


class DayEntryService(ResourceService[DayEntry]):
    """Time entries recorded by the user ``user_id``.

    The server only lists entries for an explicit date range, so ``all``
    needs both ``from`` and ``to``; build them with ``Params.for_timeframe``.
    """

    resource_type = DayEntry

    def __init__(self, api: JsonApi, user_id: int):
        self.user_id = user_id
        super().__init__(api)

    def endpoint_path(self) -> str:
        return f"people/{self.user_id}/entries"

    def all(self, params: Optional[ParamsLike] = None) -> list[DayEntry]:
        """List entries in a date range.

        Args:
            params: Query parameters holding at least ``from`` and ``to``

        Returns:
            Entries in the range

        Raises:
            BadRequest: If ``from`` or ``to`` is missing; no request is sent
        """
        query = Params(params)
        if not query.get("from") or not query.get("to"):
            err = BadRequest(MISSING_RANGE_MESSAGE)
            logger.debug(f"Refusing to list day entries of user {self.user_id}: {err}")
            raise err
        return super().all(query)
