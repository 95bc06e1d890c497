"""In-memory Harvest server for local development and tests."""

from harvest_api.mock.server import create_app, run_server
from harvest_api.mock.store import MockStore

__all__ = ["MockStore", "create_app", "run_server"]
