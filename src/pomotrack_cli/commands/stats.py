"""Statistics commands."""

import json
from datetime import timedelta

import typer
from rich.table import Table

from pomotrack_cli.context import AppContext, get_context
from pomotrack_cli.core.stats import (
    DailyStats,
    FocusScore,
    daily_stats,
    focus_score,
    streaks,
    weekly_stats,
)
from pomotrack_cli.utils.time_utils import day_bounds, format_duration, local_day
from pomotrack_cli.utils.ui.console import get_console, render_progress_bar

from .decorators import command_wrapper
from .helpers import STATUS_STYLES

console = get_console()
app = typer.Typer(help="Focus statistics and insights")


def _today(app_ctx: AppContext):
    return local_day(app_ctx.clock.now(), app_ctx.tz)


def _weights(app_ctx: AppContext) -> dict[str, float]:
    return app_ctx.config.stats.score_weights


def _print_score(score: FocusScore | None) -> None:
    if score is None:
        console.print("  Focus score:   [dim]no finished focus sessions yet[/dim]")
        return
    console.print(f"  Focus score:   [bold]{score.score:.1f}[/bold] ({score.grade})")


def _print_day(stats: DailyStats) -> None:
    console.print(f"  Sessions:      {stats.completed_sessions}/{stats.total_sessions} completed")
    console.print(f"  Focus time:    {format_duration(stats.focus_minutes * 60)}")
    console.print(f"  Break time:    {format_duration(stats.break_minutes * 60)}")
    console.print(f"  Interruptions: {stats.interruptions}")
    console.print(f"  Completion:    {stats.completion_rate:.0f}%")
    _print_score(stats.focus_score)
    if stats.categories:
        console.print("\n[bold]By category[/bold]")
        for name, minutes in stats.categories.items():
            console.print(f"  {name:<14} {format_duration(minutes * 60)}")


@app.command("today")
@command_wrapper
def stats_today(
    ctx: typer.Context,
    output: str = typer.Option("table", "--output", "-o", help="Output format: table or json"),
):
    """Show today's totals."""
    app_ctx = get_context(ctx)
    today = _today(app_ctx)
    start, end = day_bounds(today, app_ctx.tz)
    stats = daily_stats(app_ctx.store.list_sessions(start, end), today, app_ctx.tz, _weights(app_ctx))

    if output == "json":
        console.print_json(json.dumps(stats.to_dict()))
        return

    console.print(f"\n[bold cyan]Today ({today.isoformat()})[/bold cyan]\n")
    _print_day(stats)


@app.command("week")
@command_wrapper
def stats_week(
    ctx: typer.Context,
    output: str = typer.Option("table", "--output", "-o", help="Output format: table or json"),
):
    """Show the last seven days."""
    app_ctx = get_context(ctx)
    today = _today(app_ctx)
    start, _ = day_bounds(today - timedelta(days=6), app_ctx.tz)
    _, end = day_bounds(today, app_ctx.tz)
    stats = weekly_stats(app_ctx.store.list_sessions(start, end), today, app_ctx.tz, _weights(app_ctx))

    if output == "json":
        console.print_json(json.dumps(stats.to_dict()))
        return

    table = Table(title=f"Week {stats.start_date} - {stats.end_date}", show_header=True)
    table.add_column("Day", style="cyan")
    table.add_column("Sessions", justify="right")
    table.add_column("Focus", justify="right")
    table.add_column("Interruptions", justify="right")
    table.add_column("")
    busiest = max((d.focus_minutes for d in stats.days), default=0)
    for day in stats.days:
        table.add_row(
            day.date.strftime("%a %d"),
            f"{day.completed_sessions}/{day.total_sessions}",
            format_duration(day.focus_minutes * 60),
            str(day.interruptions),
            render_progress_bar(day.focus_minutes, busiest),
        )
    console.print(table)
    console.print(
        f"\n  Total:         {stats.completed_sessions}/{stats.total_sessions} sessions, "
        f"{format_duration(stats.focus_minutes * 60)}"
    )
    console.print(f"  Daily average: {format_duration(stats.daily_average_minutes * 60)}")
    if stats.best_day:
        console.print(f"  Best day:      {stats.best_day.strftime('%A %d')}")
    _print_score(stats.focus_score)


@app.command("score")
@command_wrapper
def stats_score(
    ctx: typer.Context,
    days: int = typer.Option(7, "--days", "-d", min=1, help="Days to score"),
):
    """Explain the focus score and its components."""
    app_ctx = get_context(ctx)
    today = _today(app_ctx)
    start, _ = day_bounds(today - timedelta(days=days - 1), app_ctx.tz)
    _, end = day_bounds(today, app_ctx.tz)
    score = focus_score(app_ctx.store.list_sessions(start, end), _weights(app_ctx))
    if score is None:
        console.print("[yellow]No finished focus sessions in range[/yellow]")
        return

    console.print(f"\n[bold cyan]Focus score, last {days} day(s)[/bold cyan]\n")
    console.print(f"  [bold]{score.score:.1f}[/bold] / 100  grade {score.grade}\n")
    weights = _weights(app_ctx)
    table = Table(show_header=True)
    table.add_column("Component")
    table.add_column("Value", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("")
    for name, value in score.to_dict()["components"].items():
        table.add_row(
            name.replace("_", " "),
            f"{value:.2f}",
            f"{weights.get(name, 0):g}",
            render_progress_bar(value, 1.0),
        )
    console.print(table)


@app.command("streak")
@command_wrapper
def stats_streak(ctx: typer.Context):
    """Show current and longest streaks."""
    app_ctx = get_context(ctx)
    result = streaks(app_ctx.store.list_sessions(kind="focus"), _today(app_ctx), app_ctx.tz)
    console.print(f"  Current streak: [bold]{result.current}[/bold] day(s)")
    console.print(f"  Longest streak: {result.longest} day(s)")
    if result.longest_start and result.longest_end:
        console.print(f"  [dim]{result.longest_start} to {result.longest_end}[/dim]")


@app.command("history")
@command_wrapper
def stats_history(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Number of sessions to show"),
):
    """Show recent finished sessions."""
    app_ctx = get_context(ctx)
    sessions = app_ctx.store.recent_sessions(limit)
    if not sessions:
        console.print("[yellow]No sessions yet[/yellow]")
        return

    table = Table(title=f"Recent Sessions ({len(sessions)})", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Kind")
    table.add_column("Duration", justify="right")
    table.add_column("Int.", justify="right")
    table.add_column("Status", justify="center")
    for s in sessions:
        style = STATUS_STYLES.get(s.status, "white")
        table.add_row(
            s.id[:8],
            s.start_time.astimezone(app_ctx.tz).strftime("%Y-%m-%d %H:%M"),
            s.category if s.kind == "break" and s.category else s.kind,
            format_duration(s.duration_seconds),
            str(s.interruptions),
            f"[{style}]{s.status}[/{style}]",
        )
    console.print(table)
