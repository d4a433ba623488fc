"""Pomodoro timer commands."""

import queue

import typer
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from pomotrack_cli.context import AppContext, get_context
from pomotrack_cli.core.cycling import next_session
from pomotrack_cli.core.events import fresh_header, replay
from pomotrack_cli.core.timer import TimerEngine
from pomotrack_cli.errors import NoActiveSessionError, SessionValidationError
from pomotrack_cli.utils.time_utils import format_clock, format_duration
from pomotrack_cli.utils.ui.console import format_success, format_warning, get_console

from .decorators import command_wrapper
from .helpers import auto_push, session_table, show_unlocked

console = get_console()
app = typer.Typer(help="Pomodoro timer for focus sessions")


def _finished(app_ctx: AppContext, message: str) -> None:
    format_success(message)
    show_unlocked(app_ctx.unlocked)
    auto_push(app_ctx)


def _reconcile(app_ctx: AppContext) -> None:
    """Complete a session that ran out while nobody was watching."""
    session = app_ctx.tracker().reconcile()
    if session is not None:
        _finished(
            app_ctx,
            f"Previous {session.kind} session {session.id[:8]} completed "
            f"({format_duration(session.duration_seconds)})",
        )


@app.command("start")
@command_wrapper
def start_timer(
    ctx: typer.Context,
    kind: str = typer.Option("focus", "--kind", "-k", help="Session kind: focus or break"),
    minutes: float | None = typer.Option(
        None, "--minutes", "-m", help="Session length (defaults from config)"
    ),
    category: str | None = typer.Option(None, "--category", "-c", help="Category"),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    notes: str | None = typer.Option(None, "--notes", help="Free-text notes"),
):
    """Start a focus or break session."""
    if kind not in ("focus", "break"):
        raise SessionValidationError("Kind must be 'focus' or 'break'")

    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    timer_config = app_ctx.config.timer
    if minutes is None:
        minutes = timer_config.focus_minutes if kind == "focus" else timer_config.short_break_minutes

    session = app_ctx.tracker().start(
        kind=kind, planned_minutes=minutes, category=category, tags=tag, notes=notes
    )
    format_success(
        f"Started {kind} session [cyan]{session.id[:8]}[/cyan] "
        f"for {format_duration(session.planned_seconds)}"
    )


@app.command("pause")
@command_wrapper
def pause_timer(ctx: typer.Context):
    """Pause the running session."""
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    session = app_ctx.tracker().pause()
    format_success(
        f"Paused with {format_clock(session.remaining_seconds(app_ctx.clock.now()))} remaining"
    )


@app.command("resume")
@command_wrapper
def resume_timer(ctx: typer.Context):
    """Resume the paused session."""
    app_ctx = get_context(ctx)
    session = app_ctx.tracker().resume()
    format_success(
        f"Resumed with {format_clock(session.remaining_seconds(app_ctx.clock.now()))} remaining"
    )


@app.command("interrupt")
@command_wrapper
def interrupt_timer(
    ctx: typer.Context,
    note: str | None = typer.Option(None, "--note", "-n", help="What interrupted you"),
):
    """Record an interruption without stopping the session."""
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    session = app_ctx.tracker().interrupt(note)
    format_warning(f"Interruption recorded ({session.interruptions} this session)")


@app.command("complete")
@command_wrapper
def complete_timer(ctx: typer.Context):
    """Finish the open session now and count it as completed."""
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    session = app_ctx.tracker().complete()
    _finished(
        app_ctx,
        f"Completed {session.kind} session {session.id[:8]} "
        f"({format_duration(session.duration_seconds)})",
    )


@app.command("cancel")
@command_wrapper
def cancel_timer(
    ctx: typer.Context,
    note: str | None = typer.Option(None, "--note", "-n", help="Why it was abandoned"),
):
    """Abandon the open session. It is kept as not completed."""
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    session = app_ctx.tracker().cancel(note)
    format_warning(f"Cancelled {session.kind} session {session.id[:8]}")
    auto_push(app_ctx)


@app.command("status")
@command_wrapper
def timer_status(ctx: typer.Context):
    """Show the open session."""
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    session = app_ctx.tracker().current()
    if session is None:
        console.print("[yellow]No active session[/yellow]")
        console.print("Start one with [cyan]pomotrack timer start[/cyan]")
        return
    console.print(session_table(session, app_ctx))


@app.command("next")
@command_wrapper
def timer_next(
    ctx: typer.Context,
    start: bool = typer.Option(False, "--start", "-s", help="Start the suggested session"),
):
    """Suggest the next session in the Pomodoro cycle."""
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    history = app_ctx.store.list_sessions(limit=100)
    suggestion = next_session(history, app_ctx.config.timer)

    console.print(
        f"Next: [bold]{suggestion.label}[/bold] ({suggestion.minutes} min)  "
        f"{suggestion.progress_dots()}"
    )
    if start:
        session = app_ctx.tracker().start(
            kind=suggestion.kind,
            planned_minutes=suggestion.minutes,
            category=suggestion.category,
        )
        format_success(f"Started {suggestion.label.lower()} {session.id[:8]}")


@app.command("watch")
@command_wrapper
def watch_timer(ctx: typer.Context):
    """Show a live countdown for the open session.

    The session keeps running if you stop watching with Ctrl+C.
    """
    app_ctx = get_context(ctx)
    _reconcile(app_ctx)
    tracker = app_ctx.tracker()
    session = tracker.current()
    if session is None:
        raise NoActiveSessionError()

    timer_config = app_ctx.config.timer
    engine = TimerEngine(
        app_ctx.clock,
        tracker.current,
        tick_interval=timer_config.tick_interval,
        sleep_tolerance=timer_config.sleep_tolerance,
    )
    reached_boundary = False

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(session.kind.title(), total=session.planned_seconds)
        engine.start()
        try:
            while True:
                try:
                    tick = engine.messages.get(timeout=timer_config.tick_interval * 2)
                except queue.Empty:
                    if tracker.current() is None:
                        break
                    continue
                label = "Paused" if tick.status == "paused" else session.kind.title()
                progress.update(
                    task,
                    completed=tick.elapsed_seconds,
                    description=f"{label} {format_clock(tick.remaining_seconds)} remaining",
                )
                if tick.resynced:
                    progress.console.print(
                        f"[dim]Resynced after {tick.drift_seconds:.0f}s away[/dim]"
                    )
                if tick.boundary:
                    reached_boundary = True
                    break
        except KeyboardInterrupt:
            console.print("\n[dim]Stopped watching, the session keeps running[/dim]")
        finally:
            engine.stop()

    if reached_boundary:
        _reconcile(app_ctx)
        history = app_ctx.store.list_sessions(limit=100)
        suggestion = next_session(history, timer_config)
        console.print(f"Up next: [bold]{suggestion.label}[/bold] ({suggestion.minutes} min)")
    elif tracker.current() is None:
        console.print("[dim]Session finished elsewhere[/dim]")


@app.command("log")
@command_wrapper
def timer_log(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session ID or unique prefix"),
):
    """Show the event log of a session."""
    app_ctx = get_context(ctx)
    matches = app_ctx.store.find_by_prefix(session_id)
    if not matches:
        raise SessionValidationError(f"No session matches '{session_id}'")
    if len(matches) > 1:
        raise SessionValidationError(f"'{session_id}' matches {len(matches)} sessions")
    session = matches[0]
    events = app_ctx.store.list_events(session.id)

    table = Table(title=f"Session {session.id[:8]}", show_header=True)
    table.add_column("Time", style="cyan")
    table.add_column("Event")
    table.add_column("Note")
    for event in events:
        table.add_row(
            event.timestamp.astimezone(app_ctx.tz).strftime("%H:%M:%S"),
            event.kind,
            event.note or "",
        )
    console.print(table)

    if events:
        rebuilt = replay(fresh_header(session), events)
        if rebuilt.to_dict() != session.to_dict():
            format_warning("Stored session differs from its event log (edited by sync?)")
