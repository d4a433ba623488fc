"""Output and follow-up helpers shared by commands."""

from __future__ import annotations

import asyncio

from rich.panel import Panel
from rich.table import Table

from pomotrack_cli.context import AppContext
from pomotrack_cli.models.achievements import Achievement
from pomotrack_cli.models.session import Session
from pomotrack_cli.sync.client import APIClient
from pomotrack_cli.sync.service import SyncResult
from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.time_utils import format_clock, format_duration
from pomotrack_cli.utils.ui.console import get_console

console = get_console()
logger = get_logger(__name__)

STATUS_STYLES = {
    "running": "green",
    "paused": "yellow",
    "completed": "cyan",
    "cancelled": "red",
}


def session_table(session: Session, app_ctx: AppContext) -> Table:
    now = app_ctx.clock.now()
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    style = STATUS_STYLES.get(session.status, "white")
    table.add_row("Session", session.id[:8])
    kind = session.kind
    if kind == "break" and session.category:
        kind = session.category.replace("_", " ")
    table.add_row("Kind", kind)
    table.add_row("Status", f"[{style}]{session.status}[/{style}]")
    table.add_row("Started", session.start_time.astimezone(app_ctx.tz).strftime("%H:%M:%S"))
    if session.is_open:
        table.add_row("Remaining", format_clock(session.remaining_seconds(now)))
        table.add_row("Elapsed", format_duration(session.active_seconds(now)))
    else:
        table.add_row("Duration", format_duration(session.duration_seconds))
    table.add_row("Planned", format_duration(session.planned_seconds))
    table.add_row("Interruptions", str(session.interruptions))
    if session.category and session.kind == "focus":
        table.add_row("Category", session.category)
    if session.tags:
        table.add_row("Tags", ", ".join(session.tags))
    return table


def show_unlocked(achievements: list[Achievement]) -> None:
    for achievement in achievements:
        console.print(
            Panel(
                f"[bold cyan]{achievement.icon} {achievement.name}[/bold cyan]\n"
                f"{achievement.description}",
                title="[bold green]Achievement Unlocked[/bold green]",
                border_style="green",
            )
        )
    achievements.clear()


def auto_push(app_ctx: AppContext) -> SyncResult | None:
    """Push the outbox after a session finishes, when auto sync is on.

    Failures are not errors here; the session stays queued.
    """
    config = app_ctx.config
    if not (config.sync.enabled and config.sync.auto):
        return None
    if app_ctx.config_service.load_credentials() is None:
        console.print("[dim]Saved locally, queued for sync[/dim]")
        return None

    async def _push() -> SyncResult:
        async with APIClient(app_ctx.config_service) as client:
            return await app_ctx.sync_service(client).push()

    result = asyncio.run(_push())
    if result.success:
        console.print(f"[dim]Synced {result.pushed} session(s)[/dim]")
    else:
        logger.info("Auto push deferred: %s", result.error)
        console.print(f"[dim]Saved locally, {result.remaining} queued for sync[/dim]")
    return result
