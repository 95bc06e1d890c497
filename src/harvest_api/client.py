"""Harvest API client: subdomain resolution, authentication and service wiring."""

import logging
from collections.abc import Generator
from typing import TYPE_CHECKING, Any, Optional, Union

import httpx

from harvest_api import __version__
from harvest_api.core.errors import classify_error
from harvest_api.core.json_api import HttpClient, JsonApi
from harvest_api.core.models import Account, Project, User
from harvest_api.services import (
    ClientService,
    DayEntryService,
    InvoiceService,
    ProjectService,
    TaskAssignmentService,
    TaskService,
    UserService,
)

if TYPE_CHECKING:
    from harvest_api.core.config import ConfigManager

logger = logging.getLogger(__name__)

HARVEST_DOMAIN = "harvestapp.com"
WHO_AM_I_PATH = "account/who_am_i"
DEFAULT_TIMEOUT = 30.0


def parse_subdomain(subdomain: str) -> httpx.URL:
    """Resolve an account subdomain to the API base URL.

    Args:
        subdomain: Bare account name (``acme``) or a full URL

    Returns:
        Base URL ending with a slash

    Raises:
        ValueError: If the subdomain is blank

    Example:
        >>> str(parse_subdomain("acme"))
        'https://acme.harvestapp.com/'
    """
    if subdomain is None or not subdomain.strip():
        raise ValueError("Subdomain can't be blank")
    subdomain = subdomain.strip()
    if "://" not in subdomain:
        subdomain = f"https://{subdomain}.{HARVEST_DOMAIN}/"
    if not subdomain.endswith("/"):
        subdomain += "/"
    return httpx.URL(subdomain)


class BearerAuth(httpx.Auth):
    """OAuth access token sent as ``Authorization: Bearer <token>``."""

    def __init__(self, access_token: str):
        if not access_token:
            raise ValueError("Access token can't be blank")
        self.access_token = access_token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.access_token}"
        yield request


def _http_client(auth: httpx.Auth, timeout: float, user_agent: Optional[str]) -> httpx.Client:
    headers = {"User-Agent": user_agent or f"harvest-api/{__version__}"}
    return httpx.Client(auth=auth, timeout=timeout, headers=headers)


class Harvest:
    """Entry point to a Harvest account.

    Holds one service per resource. All services share the engine, and
    therefore the HTTP client, handed in at construction.

    Example:
        >>> with Harvest.basic_auth("acme", "jane@example.com", "secret") as harvest:
        ...     for project in harvest.projects.all():
        ...         print(project.name)
    """

    def __init__(self, subdomain: str, client: HttpClient, owns_client: bool = False):
        """Initialize the client.

        Args:
            subdomain: Account name or base URL, see ``parse_subdomain``
            client: Object issuing HTTP requests (e.g. ``httpx.Client``)
            owns_client: Close ``client`` when this object is closed

        Raises:
            ValueError: If the subdomain is blank
        """
        self.base_url = parse_subdomain(subdomain)
        self.client = client
        self._owns_client = owns_client
        self.api = JsonApi(self.base_url, client)

        self.users = UserService(self.api)
        self.projects = ProjectService(self.api)
        self.clients = ClientService(self.api)
        self.tasks = TaskService(self.api)
        self.invoices = InvoiceService(self.api)

    @classmethod
    def basic_auth(
        cls,
        subdomain: str,
        username: str,
        password: str,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
    ) -> "Harvest":
        """Create a client authenticating with username and password."""
        client = _http_client(httpx.BasicAuth(username, password), timeout, user_agent)
        return cls(subdomain, client, owns_client=True)

    @classmethod
    def oauth(
        cls,
        subdomain: str,
        access_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
    ) -> "Harvest":
        """Create a client authenticating with an OAuth access token."""
        client = _http_client(BearerAuth(access_token), timeout, user_agent)
        return cls(subdomain, client, owns_client=True)

    @classmethod
    def from_config(cls, config: "ConfigManager") -> "Harvest":
        """Create a client from the ``account``, ``auth`` and ``http`` settings.

        Raises:
            ValueError: If the configuration lacks the subdomain or credentials
        """
        settings = config.settings
        subdomain = settings.account.subdomain
        if not subdomain:
            raise ValueError("No subdomain configured. Set account.subdomain first.")
        http = settings.http
        if settings.auth.method == "oauth":
            if not settings.auth.access_token:
                raise ValueError("No access token configured. Set auth.access_token first.")
            return cls.oauth(subdomain, settings.auth.access_token, timeout=http.timeout, user_agent=http.user_agent)
        credentials = settings.auth.credentials
        if credentials is None:
            raise ValueError("No credentials configured. Set auth.username and auth.password first.")
        return cls.basic_auth(subdomain, *credentials, timeout=http.timeout, user_agent=http.user_agent)

    def day_entries(self, user: Union[User, int]) -> DayEntryService:
        """Get the day entry service for ``user`` (a User or its id)."""
        return DayEntryService(self.api, _id_of(user))

    def task_assignments(self, project: Union[Project, int]) -> TaskAssignmentService:
        """Get the task assignment service for ``project`` (a Project or its id)."""
        return TaskAssignmentService(self.api, _id_of(project))

    def account(self) -> Account:
        """Get the company and the calling user.

        The body of ``account/who_am_i`` is a plain object, not an envelope.

        Raises:
            HarvestError: If the server rejects the request
        """
        response = self.api.process("GET", WHO_AM_I_PATH)
        if response.status_code != 200:
            err = classify_error(response)
            logger.debug(f"who_am_i failed: {err}")
            raise err
        return Account.model_validate_json(response.content)

    def close(self) -> None:
        """Close the HTTP client if this object created it."""
        if self._owns_client:
            close = getattr(self.client, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "Harvest":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _id_of(resource: Any) -> int:
    if isinstance(resource, int):
        return resource
    if resource.id is None:
        raise ValueError(f"{type(resource).__name__} has no id")
    return int(resource.id)

