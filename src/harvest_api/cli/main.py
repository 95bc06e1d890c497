"""Main CLI application."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from harvest_api import __version__
from harvest_api.cli.config_commands import config
from harvest_api.cli.mock_commands import mock
from harvest_api.client import Harvest
from harvest_api.core.config import ConfigManager
from harvest_api.core.errors import HarvestError, is_rate_limit_reached
from harvest_api.core.params import InvoiceStatus, Params
from harvest_api.core.timeframe import Timeframe, format_short_date, parse_short_date

console = Console()
error_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_HANDLER_NAME = "harvest-api"
API_ERRORS = (HarvestError, ValueError, httpx.HTTPError)
TOGGLEABLE = ["people", "projects", "clients"]


def setup_logging(level: str) -> None:
    """Send log records of ``level`` and above to stderr."""
    log_level = getattr(logging, level.upper(), logging.WARNING)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in list(root_logger.handlers):
        if existing.get_name() == LOG_HANDLER_NAME:
            root_logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(LOG_HANDLER_NAME)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def get_config(ctx: click.Context) -> ConfigManager:
    """Get ConfigManager for the ``--config`` path (or the default one)."""
    config_path = ctx.obj.get("config_path")
    return ConfigManager(Path(config_path) if config_path else None)


def get_harvest(ctx: click.Context) -> Harvest:
    """Get the Harvest client, built from configuration unless one was injected."""
    harvest = ctx.obj.get("harvest")
    if harvest is None:
        harvest = Harvest.from_config(get_config(ctx))
        ctx.obj["harvest"] = harvest
        ctx.call_on_close(harvest.close)
    return harvest


def fail(err: Exception) -> None:
    """Print ``err`` in red and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {err}")
    if is_rate_limit_reached(err):
        retry_after = getattr(err, "retry_after", None)
        if retry_after:
            error_console.print(f"  Retry after {int(retry_after.total_seconds())}s")
    sys.exit(1)


def parse_date_option(value: Optional[str], option: str) -> Optional[datetime]:
    """Parse a ``YYYY-MM-DD`` option value."""
    if value is None:
        return None
    day = parse_short_date(value)
    if day is None:
        raise click.BadParameter(f"Invalid date format for {option}. Use YYYY-MM-DD")
    return datetime(day.year, day.month, day.day)


def yes_no(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[dim]no[/dim]"


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", help="Custom config file", type=click.Path())
@click.option("-v", "--verbose", is_flag=True, help="Log HTTP traffic to stderr")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool, no_color: bool) -> None:
    """Harvest API - Command-line access to a Harvest account.

    List and manage users, projects, clients, tasks, invoices and time entries.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    if no_color:
        console.no_color = True
        error_console.no_color = True

    if verbose:
        setup_logging("DEBUG")
    elif "harvest" not in ctx.obj and ctx.invoked_subcommand not in ("config", "mock"):
        try:
            setup_logging(get_config(ctx).settings.advanced.log_level)
        except ValueError as e:
            fail(e)


cli.add_command(config)
cli.add_command(mock)


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Show the account and the authenticated user.

    Example:
        harvest-api whoami
    """
    try:
        account = get_harvest(ctx).account()
    except API_ERRORS as e:
        fail(e)
        return

    company = account.company
    user = account.user
    content = f"[bold]{company.name if company else 'Unknown company'}[/bold]"
    if company and company.full_domain:
        content += f"\n[dim]Domain:[/dim] {company.full_domain}"
    if user:
        content += f"\n[dim]User:[/dim] {user.full_name} <{user.email}>"
        content += f"\n[dim]Admin:[/dim] {yes_no(user.is_admin)}"
    console.print(Panel(content, title="Harvest Account", border_style="cyan"))


@cli.command()
@click.pass_context
def users(ctx: click.Context) -> None:
    """List users.

    Example:
        harvest-api users
    """
    try:
        people = get_harvest(ctx).users.all()
    except API_ERRORS as e:
        fail(e)
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Active")
    table.add_column("Admin")
    for user in people:
        table.add_row(str(user.id), user.full_name, user.email or "", yes_no(user.is_active), yes_no(user.is_admin))
    console.print(table)


@cli.command()
@click.option("--updated-since", help="Only projects updated after this date (YYYY-MM-DD)")
@click.pass_context
def projects(ctx: click.Context, updated_since: Optional[str]) -> None:
    """List projects.

    Example:
        harvest-api projects
        harvest-api projects --updated-since 2014-02-01
    """
    since = parse_date_option(updated_since, "--updated-since")
    try:
        found = get_harvest(ctx).projects.all_updated_since(since)
    except API_ERRORS as e:
        fail(e)
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Code")
    table.add_column("Client", justify="right")
    table.add_column("Active")
    for project in found:
        table.add_row(
            str(project.id),
            project.name or "",
            project.code or "",
            str(project.client_id) if project.client_id is not None else "",
            yes_no(project.active),
        )
    console.print(table)


@cli.command()
@click.pass_context
def clients(ctx: click.Context) -> None:
    """List clients."""
    try:
        found = get_harvest(ctx).clients.all()
    except API_ERRORS as e:
        fail(e)
        return

    table = Table(title="Clients")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Currency")
    table.add_column("Active")
    for client in found:
        table.add_row(str(client.id), client.name or "", client.currency or "", yes_no(client.active))
    console.print(table)


@cli.command()
@click.pass_context
def tasks(ctx: click.Context) -> None:
    """List tasks."""
    try:
        found = get_harvest(ctx).tasks.all()
    except API_ERRORS as e:
        fail(e)
        return

    table = Table(title="Tasks")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Billable by default")
    for task in found:
        table.add_row(str(task.id), task.name or "", yes_no(task.billable_by_default))
    console.print(table)


@cli.command()
@click.option(
    "-s",
    "--status",
    type=click.Choice([s.value for s in InvoiceStatus]),
    help="Only invoices in this state",
)
@click.pass_context
def invoices(ctx: click.Context, status: Optional[str]) -> None:
    """List invoices.

    Example:
        harvest-api invoices --status unpaid
    """
    try:
        service = get_harvest(ctx).invoices
        found = service.all_with_status(status) if status else service.all()
    except API_ERRORS as e:
        fail(e)
        return

    table = Table(title="Invoices")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Number")
    table.add_column("Client", justify="right")
    table.add_column("State")
    table.add_column("Amount", justify="right")
    table.add_column("Due")
    for invoice in found:
        table.add_row(
            str(invoice.id),
            invoice.number or "",
            str(invoice.client_id) if invoice.client_id is not None else "",
            invoice.state or "",
            f"{invoice.amount:.2f}" if invoice.amount is not None else "",
            format_short_date(invoice.due_at),
        )
    console.print(table)


@cli.command()
@click.argument("user_id", type=int)
@click.option("--from", "from_date", required=True, help="First day (YYYY-MM-DD)")
@click.option("--to", "to_date", required=True, help="Last day (YYYY-MM-DD)")
@click.option("--billable/--non-billable", default=None, help="Only billable or non-billable entries")
@click.pass_context
def entries(
    ctx: click.Context,
    user_id: int,
    from_date: str,
    to_date: str,
    billable: Optional[bool],
) -> None:
    """List a user's time entries in a date range.

    Example:
        harvest-api entries 42 --from 2014-02-01 --to 2014-04-01 --billable
    """
    start = parse_date_option(from_date, "--from")
    end = parse_date_option(to_date, "--to")
    timeframe = Timeframe(start.date() if start else None, end.date() if end else None)
    params = Params().for_timeframe(timeframe)
    if billable is not None:
        params.billable(billable)

    try:
        found = get_harvest(ctx).day_entries(user_id).all(params)
    except API_ERRORS as e:
        fail(e)
        return

    table = Table(title=f"Entries {timeframe}")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Date")
    table.add_column("Project", justify="right")
    table.add_column("Task", justify="right")
    table.add_column("Hours", justify="right")
    table.add_column("Notes")
    total = 0.0
    for entry in found:
        total += entry.hours or 0.0
        table.add_row(
            str(entry.id),
            format_short_date(entry.spent_at),
            str(entry.project_id or ""),
            str(entry.task_id or ""),
            f"{entry.hours or 0:.2f}",
            entry.notes or "",
        )
    console.print(table)
    console.print(f"[bold]Total:[/bold] {total:.2f}h")


@cli.command()
@click.argument("kind", type=click.Choice(TOGGLEABLE))
@click.argument("resource_id", type=int)
@click.pass_context
def toggle(ctx: click.Context, kind: str, resource_id: int) -> None:
    """Activate or deactivate a user, project or client.

    Example:
        harvest-api toggle projects 7
    """
    try:
        harvest = get_harvest(ctx)
        service = {"people": harvest.users, "projects": harvest.projects, "clients": harvest.clients}[kind]
        resource = service.find(resource_id)
        active = service.toggle(resource)
    except API_ERRORS as e:
        fail(e)
        return

    state = "[green]active[/green]" if active else "[yellow]inactive[/yellow]"
    console.print(f"[green]✓[/green] {kind} {resource_id} is now {state}")


if __name__ == "__main__":
    cli(obj={})
