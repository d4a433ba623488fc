"""Sync commands."""

import typer
from rich.table import Table

from pomotrack_cli.context import AppContext, get_context
from pomotrack_cli.errors import SyncError
from pomotrack_cli.sync.client import APIClient
from pomotrack_cli.sync.conflicts import SyncConflictTracker
from pomotrack_cli.sync.service import SyncResult
from pomotrack_cli.utils.ui.console import format_success, format_warning, get_console

from .decorators import command_wrapper

console = get_console()
app = typer.Typer(help="Synchronize sessions with the server")


def _require_enabled(app_ctx: AppContext) -> None:
    if not app_ctx.sync_enabled:
        raise SyncError("Sync is disabled (pomotrack config set sync.enabled true)")


def _report(result: SyncResult, action: str) -> None:
    if result.pulled_new or result.pulled_updated:
        console.print(
            f"  Pulled:    {result.pulled_new} new, {result.pulled_updated} updated"
        )
    if result.pushed:
        console.print(f"  Pushed:    {result.pushed}")
    if result.skipped:
        console.print(f"  Skipped:   {result.skipped} still open on another device")
    if result.conflicts:
        console.print(f"  Conflicts: {result.conflicts} (see pomotrack sync conflicts)")
    if result.dead_lettered:
        console.print(f"  [red]Dead-lettered: {result.dead_lettered}[/red]")
    if result.remaining:
        console.print(f"  Queued:    {result.remaining}")

    if result.success:
        format_success(f"{action} finished in {result.duration:.1f}s")
    else:
        raise SyncError(f"{action} incomplete: {result.error}")


@app.command("push")
@command_wrapper
async def sync_push(ctx: typer.Context):
    """Upload queued sessions."""
    app_ctx = get_context(ctx)
    _require_enabled(app_ctx)
    async with APIClient(app_ctx.config_service) as client:
        result = await app_ctx.sync_service(client).push()
    _report(result, "Push")


@app.command("pull")
@command_wrapper
async def sync_pull(
    ctx: typer.Context,
    full: bool = typer.Option(
        False, "--full", help="Ignore the last pull time and fetch every session"
    ),
):
    """Download sessions changed on the server."""
    app_ctx = get_context(ctx)
    _require_enabled(app_ctx)
    async with APIClient(app_ctx.config_service) as client:
        result = await app_ctx.sync_service(client).pull(full=full)
    _report(result, "Pull")


@app.command("run")
@command_wrapper
async def sync_run(ctx: typer.Context):
    """Pull, then push."""
    app_ctx = get_context(ctx)
    _require_enabled(app_ctx)
    async with APIClient(app_ctx.config_service) as client:
        result = await app_ctx.sync_service(client).sync()
    _report(result, "Sync")


@app.command("status")
@command_wrapper
def sync_status(
    ctx: typer.Context,
    retry_dead: bool = typer.Option(
        False, "--retry-dead", help="Move dead-lettered entries back to the queue"
    ),
):
    """Show queue size and last sync times."""
    app_ctx = get_context(ctx)
    if retry_dead:
        moved = app_ctx.store.requeue_dead()
        format_success(f"Requeued {moved} entr{'y' if moved == 1 else 'ies'}")

    status = app_ctx.sync_service().status()
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Enabled", "yes" if app_ctx.sync_enabled else "no")
    table.add_row("Endpoint", status["endpoint"])
    table.add_row("Strategy", status["strategy"])
    table.add_row("Queued", str(status["pending"]))
    table.add_row("Dead-lettered", str(status["dead_letters"]))
    for key in ("last_push", "last_pull"):
        value = status[key]
        table.add_row(
            key.replace("_", " ").capitalize(),
            value.astimezone(app_ctx.tz).strftime("%Y-%m-%d %H:%M:%S") if value else "never",
        )
    console.print(table)

    for entry in app_ctx.store.dead_letters():
        format_warning(f"{entry.session_id[:8]}: {entry.last_error}")


@app.command("conflicts")
@command_wrapper
def sync_conflicts(
    ctx: typer.Context,
    clear: bool = typer.Option(False, "--clear", help="Clear the conflict log"),
):
    """Show the conflict log."""
    app_ctx = get_context(ctx)
    tracker = SyncConflictTracker(app_ctx.config_service.data_dir)
    if clear:
        count = tracker.clear_log()
        format_success(f"Cleared {count} conflict(s)")
        return

    conflicts = tracker.load_log()
    if not conflicts:
        console.print("[green]No sync conflicts[/green]")
        return

    table = Table(title=f"Sync Conflicts ({len(conflicts)})", show_header=True)
    table.add_column("When", style="cyan")
    table.add_column("Session", style="dim")
    table.add_column("Resolution")
    table.add_column("Local updated")
    table.add_column("Remote updated")
    for conflict in conflicts:
        table.add_row(
            str(conflict.get("detected_at", ""))[:19],
            str(conflict.get("resource_id", ""))[:8],
            conflict.get("resolution", ""),
            str((conflict.get("local_data") or {}).get("updated_at", ""))[:19],
            str((conflict.get("remote_data") or {}).get("updated_at", ""))[:19],
        )
    console.print(table)
