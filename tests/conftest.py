"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Optional, Union

import httpx
import pytest  # type: ignore[import-not-found]

BASE_URL = "https://acme.harvestapp.com/"


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")


class FakeHttpClient:
    """HTTP client double recording requests and replaying queued responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[Union[httpx.Response, Exception]] = []

    def queue(
        self,
        status_code: int,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> None:
        """Queue a response; ``body`` is JSON-encoded unless raw ``content`` is given."""
        if content is None:
            content = b"" if body is None else json.dumps(body).encode("utf-8")
        self.responses.append(httpx.Response(status_code, content=content, headers=headers))

    def fail_with(self, err: Exception) -> None:
        """Queue a transport failure."""
        self.responses.append(err)

    def request(
        self,
        method: str,
        url: Union[httpx.URL, str],
        *,
        content: Optional[bytes] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        request = httpx.Request(method, url, content=content, headers=headers)
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.request = request
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def http() -> FakeHttpClient:
    """Create a fake HTTP client."""
    return FakeHttpClient()


@pytest.fixture
def base_url() -> str:
    """Base URL of the fake account."""
    return BASE_URL
