"""CLI interface for the Linear connector."""

import asyncio
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .connector import LinearConnector
from .errors import ConnectorError
from .logging_utils import redact_token, setup_logging
from .sync import SyncRunner

app = typer.Typer(
    name="linear-connector",
    help="Sync users, teams, projects and roles from Linear",
    no_args_is_help=True,
)
console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config file"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]


def get_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from file and environment."""
    try:
        return load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(1) from None


def get_connector(config: AppConfig) -> LinearConnector:
    try:
        return LinearConnector.from_config(config.linear, page_size=config.sync.page_size)
    except ConnectorError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from None


def run_async(coro: Any) -> Any:
    """Run an async function synchronously."""
    return asyncio.run(coro)


@app.command()
def validate(
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Verify the API key and that it belongs to an admin."""
    config = get_config(config_path)
    setup_logging(verbose, config.linear.api_key, console)
    connector = get_connector(config)

    async def _validate() -> None:
        try:
            await connector.validate()
        finally:
            await connector.close()

    try:
        run_async(_validate())
    except ConnectorError as e:
        console.print(f"[red]✗ Validation failed: {e}[/red]")
        raise typer.Exit(1) from None

    console.print("[green]✓ Connected to Linear as an admin[/green]")


@app.command()
def sync(
    full: Annotated[
        bool,
        typer.Option("--full", "-f", help="Ignore the checkpoint and sync from scratch"),
    ] = False,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Sync all resources, entitlements and grants."""
    config = get_config(config_path)
    setup_logging(verbose, config.linear.api_key, console)
    connector = get_connector(config)
    runner = SyncRunner(
        connector,
        checkpoint_path=config.sync.checkpoint_file,
        max_retries=config.sync.max_retries,
    )

    async def _sync():
        try:
            return await runner.run(full=full)
        finally:
            await connector.close()

    try:
        result = run_async(_sync())
    except ConnectorError as e:
        console.print(f"[red]Sync failed: {e}[/red]")
        console.print("[dim]Run again to resume from the last checkpoint.[/dim]")
        raise typer.Exit(1) from None

    table = Table(title="Sync Summary")
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right")
    for resource_type_id, count in sorted(result.resources.items()):
        table.add_row(resource_type_id.title(), f"{count:,}")
    table.add_row("Entitlements", f"{result.entitlements:,}")
    table.add_row("Grants", f"{result.grants:,}")
    table.add_row("Pages", f"{result.pages:,}")
    if result.retries:
        table.add_row("Retries", f"{result.retries:,}")
    console.print(table)

    note = " (resumed)" if result.resumed else ""
    console.print(f"[green]✓ Sync completed in {result.duration_seconds:.1f}s{note}[/green]")


@app.command()
def schemas(
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List ticket schemas (one per team)."""
    config = get_config(config_path)
    setup_logging(verbose, config.linear.api_key, console)
    connector = get_connector(config)
    if connector.tickets is None:
        console.print("[red]Ticketing is not enabled (set LINEAR_TICKETING=true)[/red]")
        raise typer.Exit(1)
    tickets = connector.tickets

    async def _schemas():
        collected = []
        token = ""
        try:
            while True:
                page = await tickets.list_ticket_schemas(token)
                collected.extend(page.items)
                token = page.next_token
                if not token:
                    return collected
        finally:
            await connector.close()

    try:
        results = run_async(_schemas())
    except ConnectorError as e:
        console.print(f"[red]Failed to list schemas: {e}[/red]")
        raise typer.Exit(1) from None

    table = Table(title="Ticket Schemas")
    table.add_column("Team", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Statuses")
    table.add_column("Custom Fields")
    for schema in results:
        table.add_row(
            schema.display_name,
            schema.id,
            ", ".join(s.display_name for s in schema.statuses),
            ", ".join(sorted(schema.custom_fields)),
        )
    console.print(table)


@app.command()
def ticket(
    ticket_id: Annotated[str, typer.Argument(help="Linear issue ID")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show one ticket."""
    config = get_config(config_path)
    setup_logging(verbose, config.linear.api_key, console)
    connector = get_connector(config)
    if connector.tickets is None:
        console.print("[red]Ticketing is not enabled (set LINEAR_TICKETING=true)[/red]")
        raise typer.Exit(1)
    tickets = connector.tickets

    async def _ticket():
        try:
            found, _ = await tickets.get_ticket(ticket_id)
            return found
        finally:
            await connector.close()

    try:
        found = run_async(_ticket())
    except ConnectorError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None

    table = Table(title=found.display_name or found.id, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", found.id)
    table.add_row("Status", found.status.display_name if found.status else "[dim]None[/dim]")
    table.add_row("Labels", ", ".join(found.labels) or "[dim]None[/dim]")
    table.add_row("URL", found.url or "[dim]None[/dim]")
    table.add_row("Created", str(found.created_at or ""))
    table.add_row("Updated", str(found.updated_at or ""))
    console.print(table)
    if found.description:
        console.print(found.description)


@app.command()
def config_show(
    config_path: ConfigOption = None,
) -> None:
    """Show current configuration (with secrets masked)."""
    config = get_config(config_path)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    api_key = config.linear.api_key
    table.add_row("API Key", redact_token(api_key) if api_key else "[red]Not set[/red]")
    table.add_row("Endpoint", config.linear.base_url)
    table.add_row("Skip Projects", str(config.linear.skip_projects))
    table.add_row("Ticketing", str(config.linear.ticketing))
    team_ids = config.linear.ticket_schema_team_ids
    table.add_row("Ticket Schema Teams", ", ".join(team_ids) if team_ids else "[dim]All[/dim]")
    table.add_row("Timeout", f"{config.linear.timeout:g}s")
    table.add_row("Page Size", str(config.sync.page_size))
    table.add_row("Checkpoint File", str(config.sync.checkpoint_file))
    table.add_row("Max Retries", str(config.sync.max_retries))

    console.print(table)


if __name__ == "__main__":
    app()
