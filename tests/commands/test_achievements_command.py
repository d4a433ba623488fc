"""Tests for the achievements commands."""

from datetime import timedelta

from typer.testing import CliRunner

from conftest import T0, make_session
from pomotrack_cli.commands.achievements import app

runner = CliRunner()


def _invoke(app_context, *args):
    return runner.invoke(app, list(args), obj=app_context)


class TestAchievementsCommand:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0

    def test_list_empty(self, app_context):
        result = _invoke(app_context, "list")

        assert result.exit_code == 0, result.output
        assert "No achievements earned yet" in result.output

    def test_list_unlocks_from_history(self, app_context):
        app_context.store.save_session(make_session(T0 - timedelta(hours=1)))

        result = _invoke(app_context, "list")

        assert result.exit_code == 0, result.output
        assert "Achievement Unlocked" in result.output
        assert "Achievements (1/" in result.output
        assert "Milestones" in result.output
        assert "Getting Started" in result.output

    def test_list_all_shows_locked(self, app_context):
        result = _invoke(app_context, "list", "--all")

        assert result.exit_code == 0, result.output
        assert "Achievements (0/" in result.output
        assert "Night Owl" in result.output
        assert "Special" in result.output
