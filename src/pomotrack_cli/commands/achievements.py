"""Achievements commands."""

import typer

from pomotrack_cli.context import get_context
from pomotrack_cli.services.achievements import AchievementStatus
from pomotrack_cli.utils.ui.console import get_console, render_progress_bar

from .decorators import command_wrapper
from .helpers import show_unlocked

console = get_console()
app = typer.Typer(help="Focus achievements and badges")

CATEGORIES = {
    "Milestones": ("total_sessions", "total_hours"),
    "Streaks": ("streak",),
    "Daily": ("daily_sessions", "daily_hours"),
    "Quality": ("uninterrupted_sessions",),
    "Special": ("early_session", "late_session", "weekend_sessions"),
}


def _group(statuses: list[AchievementStatus]) -> dict[str, list[AchievementStatus]]:
    groups: dict[str, list[AchievementStatus]] = {name: [] for name in CATEGORIES}
    for status in statuses:
        for name, types in CATEGORIES.items():
            if status.achievement.requirement_type in types:
                groups[name].append(status)
                break
    return groups


@app.command("list")
@command_wrapper
def list_achievements(
    ctx: typer.Context,
    show_all: bool = typer.Option(
        False, "--all", help="Show all achievements including locked ones"
    ),
):
    """Show earned achievements and badges."""
    app_ctx = get_context(ctx)
    tracker = app_ctx.achievements()
    show_unlocked(tracker.check())

    statuses = tracker.statuses()
    earned = [s for s in statuses if s.unlocked]
    if not earned and not show_all:
        console.print(
            "[yellow]No achievements earned yet. Complete focus sessions to earn badges![/yellow]"
        )
        console.print("\nTip: Use [cyan]--all[/cyan] to see available achievements")
        return

    console.print(f"\n[bold cyan]Achievements ({len(earned)}/{len(statuses)})[/bold cyan]\n")
    for category, members in _group(statuses).items():
        visible = members if show_all else [s for s in members if s.unlocked]
        if not visible:
            continue
        console.print(f"[bold]{category}[/bold]")
        for status in visible:
            a = status.achievement
            if status.unlocked:
                when = status.unlocked_at.astimezone(app_ctx.tz).strftime("%Y-%m-%d")
                console.print(f"  {a.icon} {a.name} - {a.description} [dim]({when})[/dim]")
            else:
                bar = render_progress_bar(status.percentage, 100, width=20)
                console.print(
                    f"  [dim]🔒 {a.name} - {a.description}[/dim]  {bar} {status.percentage:.0f}%"
                )
        console.print()
