"""Configuration management commands."""

import json

import typer

from pomotrack_cli.context import AppContext
from pomotrack_cli.services.config_service import ConfigService, get_config_service
from pomotrack_cli.utils.ui.console import format_error, format_success, get_console

from .decorators import command_wrapper

app = typer.Typer(help="Configuration management commands")
console = get_console()


def _config_service(ctx: typer.Context) -> ConfigService:
    obj = ctx.find_root().obj
    if isinstance(obj, AppContext):
        return obj.config_service
    return get_config_service()


def _parse_value(value: str):
    """Convert a command-line string to the JSON type it spells."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.lower() in ("null", "none"):
        return None
    try:
        return json.loads(value)
    except ValueError:
        return value


@app.command("show")
@command_wrapper
def show_config(ctx: typer.Context) -> None:
    """Show the current configuration."""
    config = _config_service(ctx).config
    console.print_json(config.model_dump_json())


@app.command("get")
@command_wrapper
def get_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.focus_minutes)"),
) -> None:
    """Get a configuration value."""
    value = _config_service(ctx).get(key)
    if hasattr(value, "model_dump_json"):
        console.print_json(value.model_dump_json())
    else:
        console.print(value)


@app.command("set")
@command_wrapper
def set_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.focus_minutes)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value = _parse_value(value)
    _config_service(ctx).set(key, parsed_value)
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_config(
    ctx: typer.Context,
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_error("Cancelled")
            raise typer.Exit(0)

    _config_service(ctx).reset(key)
    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")


@app.command("token")
@command_wrapper
def set_token(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="API access token"),
    refresh_token: str | None = typer.Option(None, "--refresh-token", help="Refresh token"),
) -> None:
    """Store API credentials for sync."""
    _config_service(ctx).save_credentials(token, refresh_token)
    format_success("Credentials saved")


@app.command("logout")
@command_wrapper
def logout(ctx: typer.Context) -> None:
    """Remove stored API credentials."""
    _config_service(ctx).clear_credentials()
    format_success("Credentials removed")
