"""Generic CRUD engine for the Harvest REST API.

One JsonApi instance is bound to a base URL, an HTTP client and an endpoint
path. It implements List/Find/Create/Update/Delete/Toggle once for every
resource type: requests and responses flow through the envelope codec, and
unsuccessful responses through the error classifier.

The engine keeps no state between calls and never retries.
"""

import logging
import re
from typing import Any, Optional, Protocol, TypeVar, Union

import httpx

from harvest_api.core import envelope
from harvest_api.core.errors import BadRequest, NotFound, classify_error
from harvest_api.core.params import Params, ParamsLike
from harvest_api.core.resource import ActiveTogglerCrudModel, CrudModel

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=CrudModel)

MEDIA_TYPE = "application/json"
DEFAULT_HEADERS = {"Content-Type": MEDIA_TYPE, "Accept": MEDIA_TYPE}


class HttpClient(Protocol):
    """Minimal HTTP capability used by the engine.

    ``httpx.Client`` (and therefore ``fastapi.testclient.TestClient``)
    satisfies it. Timeouts, pooling and authentication belong to the client.
    """

    def request(
        self,
        method: str,
        url: Union[httpx.URL, str],
        *,
        content: Optional[bytes] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response: ...


def parse_location_id(location: Optional[str], path: str) -> Optional[int]:
    """Get the identifier from a ``Location`` header pointing below ``path``.

    Only ``.../<path>/<integer>`` is accepted; malformed URLs and locations
    under another endpoint yield ``None``.
    """
    if not location:
        return None
    try:
        location_path = httpx.URL(location).path
    except httpx.InvalidURL:
        return None
    path = path.strip("/")
    prefix = f"/{re.escape(path)}" if path else ""
    match = re.search(rf"{prefix}/(\d+)/?$", location_path)
    if match is None:
        return None
    return int(match.group(1))


class JsonApi:
    """CRUD operations against one endpoint path."""

    def __init__(self, base_url: Union[httpx.URL, str], client: HttpClient, path: str = ""):
        """Initialize the engine.

        Args:
            base_url: API base URL, e.g. ``https://acme.harvestapp.com/``
            client: HTTP client issuing the requests
            path: Endpoint path relative to the base URL, e.g. ``people``
        """
        self.base_url = httpx.URL(str(base_url))
        self.client = client
        self.path = path.strip("/")

    def for_path(self, path: str) -> "JsonApi":
        """Get an engine for another endpoint sharing base URL and client."""
        return JsonApi(self.base_url, self.client, path)

    def url_for(self, path: str, params: Optional[ParamsLike] = None) -> httpx.URL:
        """Build the absolute URL for ``path`` plus encoded query parameters."""
        if params:
            query = Params(params).encode()
            if query:
                path = f"{path}?{query}"
        return self.base_url.join(path)

    def _member_path(self, id: Any) -> str:
        return f"{self.path}/{id}"

    def _resource_path(self, resource: CrudModel) -> str:
        if resource.id is None:
            raise ValueError(f"{type(resource).__name__} has no id")
        return self._member_path(resource.id)

    def process(
        self,
        method: str,
        path: str,
        body: Optional[bytes] = None,
        params: Optional[ParamsLike] = None,
    ) -> httpx.Response:
        """Issue a request with the envelope media type headers.

        Transport errors propagate unmodified.
        """
        url = self.url_for(path, params)
        logger.debug(f"{method} {url}")
        response = self.client.request(method, url, content=body, headers=dict(DEFAULT_HEADERS))
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def _fail(self, response: httpx.Response) -> Exception:
        err = classify_error(response)
        logger.debug(f"{type(err).__name__}: {err}")
        return err

    def all(self, resource_type: type[T], params: Optional[ParamsLike] = None) -> list[T]:
        """List every resource at the endpoint.

        Args:
            resource_type: Type each list element is decoded into
            params: Optional query parameters

        Returns:
            Decoded resources in response order
        """
        response = self.process("GET", self.path, params=params)
        if not response.is_success:
            raise self._fail(response)
        return envelope.decode_list_into(response.content, resource_type)

    def find(self, resource_type: type[T], id: Any, params: Optional[ParamsLike] = None) -> T:
        """Get the resource identified by ``id``.

        Raises:
            NotFound: If the server answers 404
        """
        response = self.process("GET", self._member_path(id), params=params)
        if response.status_code == 404:
            err = NotFound()
            logger.debug(f"{self.path}/{id}: {err}")
            raise err
        if response.status_code != 200:
            raise self._fail(response)
        return envelope.decode_into(response.content, resource_type)

    def create(self, resource: M) -> M:
        """Create ``resource`` and assign the identifier the server issued.

        The identifier is read from the ``Location`` header of the 201
        response.

        Raises:
            BadRequest: If a 201 response carries no identifier
        """
        response = self.process("POST", self.path, envelope.encode(resource))
        if response.status_code != 201:
            raise self._fail(response)
        new_id = parse_location_id(response.headers.get("Location"), self.path)
        if new_id is None:
            err = BadRequest()
            logger.debug(f"No id in Location header {response.headers.get('Location')!r}")
            raise err
        resource.set_id(new_id)
        return resource

    def update(self, resource: CrudModel) -> None:
        """Send the current state of ``resource``."""
        response = self.process("PUT", self._resource_path(resource), envelope.encode(resource))
        if response.status_code != 200:
            raise self._fail(response)

    def delete(self, resource: CrudModel) -> None:
        """Delete ``resource`` at the server."""
        response = self.process("DELETE", self._resource_path(resource), envelope.encode(resource))
        if response.status_code != 200:
            raise self._fail(response)

    def toggle(self, resource: ActiveTogglerCrudModel) -> bool:
        """Flip the active state of ``resource``.

        On success the resource's own flag is flipped in place to mirror the
        server; nothing is re-fetched. Callers sharing the value across
        threads must synchronize around this call.

        Returns:
            The new active state
        """
        response = self.process("POST", self._resource_path(resource), envelope.encode(resource))
        if response.status_code != 200:
            raise self._fail(response)
        return resource.toggle_active()
