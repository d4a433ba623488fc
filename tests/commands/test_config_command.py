"""Tests for the config commands."""

import json

from typer.testing import CliRunner

from pomotrack_cli.commands.config import _parse_value, app
from pomotrack_cli.utils import exit_codes

runner = CliRunner()


def _invoke(app_context, *args, **kwargs):
    return runner.invoke(app, list(args), obj=app_context, **kwargs)


def test_show(app_context):
    result = _invoke(app_context, "show")

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["timer"]["focus_minutes"] == 25
    assert data["sync"]["enabled"] is False


def test_get(app_context):
    result = _invoke(app_context, "get", "timer.long_break_minutes")
    assert result.exit_code == 0
    assert result.output.strip() == "15"


def test_get_section(app_context):
    result = _invoke(app_context, "get", "goals")
    assert json.loads(result.output)["daily_sessions"] == 8


def test_get_unknown_key(app_context):
    result = _invoke(app_context, "get", "timer.nope")
    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_set(app_context):
    result = _invoke(app_context, "set", "timer.focus_minutes", "50")

    assert result.exit_code == 0, result.output
    assert app_context.config.timer.focus_minutes == 50


def test_set_invalid_value(app_context):
    result = _invoke(app_context, "set", "timer.focus_minutes", "0")

    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS
    assert app_context.config.timer.focus_minutes == 25


def test_set_timezone(app_context):
    assert _invoke(app_context, "set", "stats.timezone", "Europe/Berlin").exit_code == 0
    assert app_context.config.stats.timezone == "Europe/Berlin"

    result = _invoke(app_context, "set", "stats.timezone", "Nowhere/City")
    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_reset_with_confirmation(app_context):
    _invoke(app_context, "set", "timer.focus_minutes", "50")

    declined = _invoke(app_context, "reset", "timer.focus_minutes", input="n\n")
    assert declined.exit_code == 0
    assert app_context.config.timer.focus_minutes == 50

    accepted = _invoke(app_context, "reset", "timer.focus_minutes", "--yes")
    assert accepted.exit_code == 0
    assert app_context.config.timer.focus_minutes == 25


def test_token_and_logout(app_context):
    result = _invoke(app_context, "token", "abc", "--refresh-token", "def")
    assert result.exit_code == 0
    assert app_context.config_service.load_credentials() == {
        "token": "abc",
        "refresh_token": "def",
    }

    _invoke(app_context, "logout")
    assert app_context.config_service.load_credentials() is None


def test_parse_value():
    assert _parse_value("true") is True
    assert _parse_value("None") is None
    assert _parse_value("25") == 25
    assert _parse_value("0.5") == 0.5
    assert _parse_value("Europe/Berlin") == "Europe/Berlin"
