"""``harvest-api config``: inspect and edit the settings file."""

import json
import sys
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from harvest_api.core.config import MASK, SECRET_SETTINGS, ConfigManager, setting_keys

console = Console()
error_console = Console(stderr=True)


@contextmanager
def reporting_errors() -> Generator[None, None, None]:
    """Print a ``ValueError`` in red and exit with status 1."""
    try:
        yield
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def open_config(ctx: click.Context) -> ConfigManager:
    """Open the settings file chosen by the root ``--config`` option."""
    config_path = (ctx.find_root().obj or {}).get("config_path")
    with reporting_errors():
        return ConfigManager(Path(config_path) if config_path else None)


@click.group()  # type: ignore[misc]
def config() -> None:
    """Show and change settings (~/.harvest-api/config.yml by default).

    Settings are named section.name, e.g. account.subdomain or auth.method.
    """


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def show(ctx: click.Context, as_json: bool) -> None:
    """Show every setting. Passwords and tokens are masked."""
    manager = open_config(ctx)
    values = manager.items()

    if as_json:
        click.echo(json.dumps(values, indent=2))
        return

    table = Table(title=f"Settings in {manager.config_path}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in values.items():
        table.add_row(key, "[dim]unset[/dim]" if value is None else str(value))
    console.print(table)


@config.command("keys")  # type: ignore[misc]
def keys() -> None:
    """List the names of all settings."""
    for key in setting_keys():
        console.print(key)


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def get(ctx: click.Context, key: str) -> None:
    """Print one setting.

    Exits with status 1 if the setting is unset.
    """
    manager = open_config(ctx)
    with reporting_errors():
        value = manager.get(key)
    if value is None:
        error_console.print(f"[yellow]{key} is not set[/yellow]")
        sys.exit(1)
    click.echo(MASK if key in SECRET_SETTINGS else value)


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def set_(ctx: click.Context, key: str, value: str) -> None:
    """Change one setting.

    VALUE is converted to the setting's type, e.g. http.timeout 12.5.

    Example:
        harvest-api config set account.subdomain acme
    """
    manager = open_config(ctx)
    with reporting_errors():
        manager.set(key, value)
    shown = MASK if key in SECRET_SETTINGS else manager.get(key)
    console.print(f"[green]✓[/green] {key} = {shown}")


@config.command("unset")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def unset(ctx: click.Context, key: str) -> None:
    """Restore one setting to its default."""
    manager = open_config(ctx)
    with reporting_errors():
        manager.unset(key)
    console.print(f"[green]✓[/green] {key} restored to {manager.get(key)}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def reset(ctx: click.Context, yes: bool) -> None:
    """Restore every setting to its default, keeping a backup."""
    manager = open_config(ctx)
    if not yes and not click.confirm("Replace all settings with defaults?"):
        console.print("Cancelled")
        return
    backup = manager.reset()
    if backup is not None:
        console.print(f"Previous settings kept in {backup}")
    console.print("[green]✓[/green] Defaults restored")


@config.command("validate")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def validate(ctx: click.Context) -> None:
    """Check the settings file."""
    manager = open_config(ctx)
    with reporting_errors():
        manager.validate()
    console.print(f"[green]✓[/green] {manager.config_path} is valid")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def path(ctx: click.Context) -> None:
    """Print where the settings file lives."""
    click.echo(str(open_config(ctx).config_path))
