"""Goals and targets commands."""

import typer

from pomotrack_cli.context import get_context
from pomotrack_cli.services.goals import GOAL_TYPES
from pomotrack_cli.utils.time_utils import format_duration
from pomotrack_cli.utils.ui.console import format_success, get_console, render_progress_bar

from .decorators import command_wrapper

console = get_console()
app = typer.Typer(help="Focus goals and targets")


def _line(label: str, values: dict, fmt=str, unit: str = "") -> None:
    bar = render_progress_bar(values["current"], values["target"], width=12)
    done = " [green]✓[/green]" if values["achieved"] else ""
    console.print(
        f"  {label:<13} {fmt(values['current'])}/{fmt(values['target'])}{unit}  "
        f"{bar} {values['progress']:.0f}%{done}"
    )


def _minutes(value: float) -> str:
    return format_duration(value * 60)


@app.command("show")
@command_wrapper
def show_goals(ctx: typer.Context):
    """Show current goals and progress."""
    manager = get_context(ctx).goals()
    progress = manager.get_all_progress()

    console.print("\n[bold cyan]Focus Goals & Progress[/bold cyan]\n")
    console.print("[bold]Daily Goals[/bold]")
    _line("Sessions:", progress["daily"]["sessions"])
    _line("Focus Time:", progress["daily"]["minutes"], _minutes)

    console.print("\n[bold]Weekly Goals[/bold]")
    _line("Sessions:", progress["weekly"]["sessions"])
    _line("Focus Time:", progress["weekly"]["minutes"], _minutes)

    console.print("\n[bold]Streak Goal[/bold]")
    streak = progress["streak"]
    _line("Current:", streak, unit=" days")
    console.print(f"  Longest:      {streak['longest']} days")

    achieved = manager.achieved_goals()
    console.print()
    if len(achieved) >= 4:
        console.print("[bold green]Amazing! You've hit most of your goals![/bold green]")
    elif achieved:
        console.print("[bold cyan]Great progress! Keep it up![/bold cyan]")
    else:
        left = max(0, progress["daily"]["sessions"]["target"] - progress["daily"]["sessions"]["current"])
        if left > 0:
            console.print(f"[dim]{left} more session(s) today to hit your daily goal[/dim]")


@app.command("set")
@command_wrapper
def set_goal(
    ctx: typer.Context,
    goal_type: str = typer.Argument(..., help=f"One of: {', '.join(GOAL_TYPES)}"),
    value: int = typer.Argument(..., help="Target value, 0 disables the goal"),
):
    """Set a goal target."""
    get_context(ctx).goals().set_goal(goal_type, value)
    format_success(f"Set {goal_type} to {value}")


@app.command("reset")
@command_wrapper
def reset_goals(ctx: typer.Context):
    """Reset all goals to their defaults."""
    get_context(ctx).goals().reset_goals()
    format_success("Goals reset to defaults")
