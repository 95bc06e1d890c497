"""Mock Harvest server.

A FastAPI application speaking the Harvest wire format against a MockStore.
It is meant for local development and for end-to-end tests: hand
``fastapi.testclient.TestClient(create_app(store))`` to ``Harvest`` as its
HTTP client.
"""

import json
import logging
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse, Response  # type: ignore[import-untyped]

from harvest_api import __version__
from harvest_api.core import envelope
from harvest_api.core.params import UPDATED_SINCE_FORMAT
from harvest_api.core.resource import Resource
from harvest_api.core.timeframe import Timeframe
from harvest_api.mock.store import MockStore

logger = logging.getLogger(__name__)

# kind -> (path template, scope parameter)
ROUTES: dict[str, tuple[str, Optional[str]]] = {
    "people": ("/people", None),
    "projects": ("/projects", None),
    "clients": ("/clients", None),
    "tasks": ("/tasks", None),
    "invoices": ("/invoices", None),
    "entries": ("/people/{user_id}/entries", "user_id"),
    "task_assignments": ("/projects/{project_id}/task_assignments", "project_id"),
}


class NotFoundError(Exception):
    """Raised by handlers to answer 404 with an empty body."""


def _not_found() -> Response:
    return Response(status_code=404)


def _message(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


def _int_param(request: Request, name: str) -> int:
    try:
        return int(request.path_params[name])
    except (KeyError, ValueError):
        raise NotFoundError(name) from None


def _enveloped(resources: list[Resource]) -> JSONResponse:
    return JSONResponse([envelope.wrap(resource).to_dict() for resource in resources])


async def _read_resource(request: Request, resource_type: type[Resource]) -> Resource:
    """Decode the enveloped request body into ``resource_type``.

    Raises:
        ValueError: If the body is not an envelope of the expected kind
    """
    body = await request.body()
    try:
        wrapped = envelope.decode(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed JSON body: {e}") from e
    if wrapped.name != resource_type.resource_name:
        raise ValueError(f"Expected '{resource_type.resource_name}' envelope, got '{wrapped.name}'")
    return resource_type.model_validate(wrapped.body)


def _parse_billable(value: Optional[str]) -> Optional[bool]:
    if value is None or value == "":
        return None
    if value == "yes":
        return True
    if value == "no":
        return False
    raise ValueError(f"Malformed billable param: {value}")


def _parse_updated_since(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        moment = datetime.strptime(value, UPDATED_SINCE_FORMAT)
    except ValueError as e:
        raise ValueError(f"Error while parsing updated since: {e}") from e
    return moment.replace(tzinfo=timezone.utc)


def _register_collection(
    app: FastAPI, store: MockStore, kind: str, template: str, scope_param: Optional[str]
) -> None:
    """Register list/create and find/update/delete/toggle routes for one kind."""
    resource_type = store.resource_type(kind)

    def scope_of(request: Request) -> Optional[dict[str, int]]:
        if scope_param is None:
            return None
        return {scope_param: _int_param(request, scope_param)}

    async def list_resources(request: Request) -> Response:
        if kind == "entries":
            try:
                timeframe = Timeframe.from_query(request.query_params)
            except ValueError as e:
                return _message(f"Error while parsing timeframe: {e}")
            billable = _parse_billable(request.query_params.get("billable"))
            return _enveloped(store.day_entries(_int_param(request, "user_id"), timeframe, billable))
        updated_since = _parse_updated_since(request.query_params.get("updated_since"))
        return _enveloped(store.all(kind, scope_of(request), updated_since))

    async def create_resource(request: Request) -> Response:
        scope = scope_of(request)
        created = store.create(kind, await _read_resource(request, resource_type), scope)
        location = f"{request.url.path.rstrip('/')}/{created.id}"
        return Response(status_code=201, headers={"Location": location})

    async def find_resource(request: Request) -> Response:
        found = store.find(kind, _int_param(request, "id"), scope_of(request))
        if found is None:
            return _not_found()
        return JSONResponse(envelope.wrap(found).to_dict())

    async def update_resource(request: Request) -> Response:
        resource = await _read_resource(request, resource_type)
        if not store.update(kind, _int_param(request, "id"), resource, scope_of(request)):
            return _not_found()
        return Response(status_code=200)

    async def delete_resource(request: Request) -> Response:
        if not store.delete(kind, _int_param(request, "id"), scope_of(request)):
            return _not_found()
        return Response(status_code=200)

    async def toggle_resource(request: Request) -> Response:
        state = store.toggle(kind, _int_param(request, "id"), scope_of(request))
        if state is None:
            return _not_found()
        return Response(status_code=200)

    member = f"{template}/{{id}}"
    app.add_api_route(template, list_resources, methods=["GET"], tags=[kind])
    app.add_api_route(template, create_resource, methods=["POST"], status_code=201, tags=[kind])
    app.add_api_route(member, find_resource, methods=["GET"], tags=[kind])
    app.add_api_route(member, update_resource, methods=["PUT"], tags=[kind])
    app.add_api_route(member, delete_resource, methods=["DELETE"], tags=[kind])
    app.add_api_route(member, toggle_resource, methods=["POST"], tags=[kind])


def create_app(store: Optional[MockStore] = None) -> FastAPI:
    """Create the mock Harvest application.

    Args:
        store: Backing store (an empty one if None)

    Returns:
        Configured FastAPI application instance

    Example:
        >>> store = MockStore()
        >>> client = TestClient(create_app(store))
        >>> harvest = Harvest("http://testserver", client)
    """
    if store is None:
        store = MockStore()

    app = FastAPI(
        title="Harvest Mock API",
        description="In-memory server speaking the Harvest wire format",
        version=__version__,
    )
    app.state.store = store

    @app.middleware("http")
    async def throttle(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        retry_after = store.retry_after
        if retry_after is not None:
            logger.debug(f"Throttled {request.method} {request.url.path}")
            return JSONResponse(
                {"message": "Rate limit reached"},
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

    @app.exception_handler(ValueError)
    async def business_error(request: Request, exc: ValueError) -> JSONResponse:
        logger.debug(f"{request.method} {request.url.path} rejected: {exc}")
        return _message(str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> Response:
        return _not_found()

    @app.get("/account/who_am_i")
    async def who_am_i() -> JSONResponse:
        body: dict[str, Any] = store.account.model_dump(mode="json", exclude_none=True)
        return JSONResponse(body)

    for kind, (template, scope_param) in ROUTES.items():
        _register_collection(app, store, kind, template, scope_param)

    return app


def run_server(store: MockStore, host: str = "127.0.0.1", port: int = 8080, log_level: str = "info") -> None:
    """Run the mock server using Uvicorn.

    Note:
        This function blocks until the server is stopped.
    """
    import uvicorn  # type: ignore[import-untyped]

    uvicorn.run(create_app(store), host=host, port=port, log_level=log_level)
