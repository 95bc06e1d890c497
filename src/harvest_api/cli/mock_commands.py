"""CLI commands for the mock Harvest server."""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml  # type: ignore[import-untyped]

from harvest_api.core.config import ConfigManager
from harvest_api.mock.server import run_server
from harvest_api.mock.store import MockStore


@click.group()
def mock() -> None:
    """In-memory Harvest server for development."""
    pass


@mock.command()
@click.option("--host", default=None, help="Host address (default: from config)")
@click.option("--port", type=int, default=None, help="Port number (default: from config)")
@click.option("--seed", type=click.Path(exists=True, dir_okay=False), help="YAML file with initial data")
@click.option("--throttle", type=int, default=None, help="Answer every request with 429 and this Retry-After")
@click.pass_context
def serve(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    seed: Optional[str],
    throttle: Optional[int],
) -> None:
    """Start the mock server.

    Examples:
        harvest-api mock serve
        harvest-api mock serve --port 9000 --seed fixtures.yml
        harvest-api config set account.subdomain http://127.0.0.1:9000
    """
    obj = ctx.find_root().obj or {}
    config_path = obj.get("config_path")

    try:
        config = ConfigManager(Path(config_path) if config_path else None)
        store = MockStore.load(Path(seed)) if seed else MockStore()
    except (ValueError, yaml.YAMLError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if throttle is not None:
        store.throttle(throttle)

    final_host = host or config.settings.mock.host
    final_port = port or config.settings.mock.port

    click.echo("Starting mock Harvest server...")
    click.echo(f"   URL: http://{final_host}:{final_port}/")
    click.echo(f"   Docs: http://{final_host}:{final_port}/docs")
    click.echo()

    try:
        run_server(store, host=final_host, port=final_port)
    except KeyboardInterrupt:
        click.echo("\nShutting down mock server...")
