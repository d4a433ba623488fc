"""Main entry point for Pomotrack CLI."""

import asyncio
from datetime import timedelta

import typer

from pomotrack_cli import __version__
from pomotrack_cli.commands import achievements, config, goals, stats, sync, timer
from pomotrack_cli.commands.decorators import command_wrapper
from pomotrack_cli.context import get_context
from pomotrack_cli.sync.client import APIClient
from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.typer_helpers import SuggestingGroup
from pomotrack_cli.utils.ui.console import format_success, get_console

app = typer.Typer(
    name="pomotrack",
    cls=SuggestingGroup,
    help="Pomodoro focus tracking with offline-first sync",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(timer.app, name="timer", help="Pomodoro timer for focus sessions")
app.add_typer(stats.app, name="stats", help="Focus statistics and insights")
app.add_typer(sync.app, name="sync", help="Synchronize sessions with the server")
app.add_typer(goals.app, name="goals", help="Focus goals and targets")
app.add_typer(achievements.app, name="achievements", help="Achievements and badges")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version(ctx: typer.Context) -> None:
    """Show version information and API health."""
    console.print(f"[bold]Pomotrack CLI[/bold] version [cyan]{__version__}[/cyan]")

    app_ctx = get_context(ctx)
    if not app_ctx.sync_enabled:
        return
    if app_ctx.config_service.load_credentials() is None:
        console.print("[yellow]No API token - sync runs locally only[/yellow]")
        return

    async def check_health() -> bool:
        async with APIClient(app_ctx.config_service) as client:
            return await client.health()

    if asyncio.run(check_health()):
        console.print("[green]✓ API is healthy[/green]")
    else:
        console.print("[red]✗ API is unreachable[/red]")


@app.command()
@command_wrapper
def prune(ctx: typer.Context) -> None:
    """Delete timer events older than the retention window."""
    app_ctx = get_context(ctx)
    days = app_ctx.config.stats.event_retention_days
    removed = app_ctx.store.purge_events(app_ctx.clock.now() - timedelta(days=days))
    format_success(f"Removed {removed} event(s) older than {days} days")


def main() -> None:
    """Main entry point."""
    get_logger()
    app()


if __name__ == "__main__":
    main()
