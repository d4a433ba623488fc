"""Tests for the timer commands."""

from typer.testing import CliRunner

from pomotrack_cli.commands.timer import app
from pomotrack_cli.utils import exit_codes

runner = CliRunner()


def _invoke(app_context, *args):
    return runner.invoke(app, list(args), obj=app_context)


class TestStart:
    def test_start_focus(self, app_context):
        result = _invoke(app_context, "start", "--category", "writing", "-t", "draft")

        assert result.exit_code == 0, result.output
        assert "Started focus session" in result.output
        assert "25m" in result.output
        session = app_context.store.get_open_session()
        assert session.category == "writing"
        assert session.tags == ["draft"]
        assert session.device_id == app_context.device_id

    def test_break_uses_configured_length(self, app_context):
        app_context.config_service.set("timer.short_break_minutes", 7)
        result = _invoke(app_context, "start", "--kind", "break")

        assert result.exit_code == 0, result.output
        assert app_context.store.get_open_session().planned_seconds == 7 * 60

    def test_second_start_rejected(self, app_context):
        _invoke(app_context, "start")
        result = _invoke(app_context, "start")

        assert result.exit_code == exit_codes.ERROR_INVALID_STATE
        assert "still open" in result.output

    def test_unknown_kind(self, app_context):
        result = _invoke(app_context, "start", "--kind", "nap")
        assert result.exit_code == exit_codes.ERROR_INVALID_ARGS

    def test_non_positive_minutes(self, app_context):
        result = _invoke(app_context, "start", "--minutes", "0")
        assert result.exit_code == exit_codes.ERROR_INVALID_ARGS
        assert app_context.store.get_open_session() is None


class TestLifecycle:
    def test_pause_and_resume(self, app_context, clock):
        _invoke(app_context, "start")
        clock.advance(5 * 60)

        paused = _invoke(app_context, "pause")
        assert paused.exit_code == 0, paused.output
        assert "20:00 remaining" in paused.output

        clock.advance(60 * 60)
        resumed = _invoke(app_context, "resume")
        assert resumed.exit_code == 0, resumed.output
        assert "20:00 remaining" in resumed.output

    def test_pause_twice(self, app_context):
        _invoke(app_context, "start")
        _invoke(app_context, "pause")
        result = _invoke(app_context, "pause")
        assert result.exit_code == exit_codes.ERROR_INVALID_STATE

    def test_pause_without_session(self, app_context):
        result = _invoke(app_context, "pause")
        assert result.exit_code == exit_codes.ERROR_NOT_FOUND
        assert "No active session" in result.output

    def test_interrupt(self, app_context):
        _invoke(app_context, "start")
        result = _invoke(app_context, "interrupt", "--note", "phone")

        assert result.exit_code == 0, result.output
        assert "1 this session" in result.output
        assert app_context.store.get_open_session().interruptions == 1

    def test_complete_unlocks_first_achievement(self, app_context, clock):
        _invoke(app_context, "start")
        clock.advance(10 * 60)
        result = _invoke(app_context, "complete")

        assert result.exit_code == 0, result.output
        assert "Completed focus session" in result.output
        assert "Achievement Unlocked" in result.output
        assert "Getting Started" in result.output
        assert app_context.unlocked == []
        assert app_context.store.queue_size() == 1

    def test_cancel(self, app_context, clock):
        _invoke(app_context, "start")
        clock.advance(60)
        result = _invoke(app_context, "cancel")

        assert result.exit_code == 0, result.output
        assert "Cancelled focus session" in result.output
        session = app_context.store.recent_sessions(1)[0]
        assert session.status == "cancelled"
        assert session.completed is False

    def test_finished_session_queued_for_sync(self, app_context, clock):
        app_context.config_service.set("sync.enabled", True)
        _invoke(app_context, "start")
        clock.advance(60)
        result = _invoke(app_context, "complete")

        assert "queued for sync" in result.output


class TestStatus:
    def test_no_session(self, app_context):
        result = _invoke(app_context, "status")
        assert result.exit_code == 0
        assert "No active session" in result.output

    def test_running_session(self, app_context, clock):
        _invoke(app_context, "start", "--minutes", "30")
        clock.advance(90)
        result = _invoke(app_context, "status")

        assert result.exit_code == 0, result.output
        assert "running" in result.output
        assert "28:30" in result.output

    def test_expired_session_completed_at_boundary(self, app_context, clock):
        _invoke(app_context, "start")
        clock.advance(3 * 60 * 60, sleep=True)
        result = _invoke(app_context, "status")

        assert "Previous focus session" in result.output
        assert "No active session" in result.output
        session = app_context.store.recent_sessions(1)[0]
        assert session.completed is True
        assert session.duration_seconds == 25 * 60


class TestNext:
    def test_focus_first(self, app_context):
        result = _invoke(app_context, "next")
        assert result.exit_code == 0, result.output
        assert "Next: Focus (25 min)" in result.output

    def test_break_after_focus_and_start(self, app_context, clock):
        _invoke(app_context, "start")
        clock.advance(25 * 60)
        result = _invoke(app_context, "next", "--start")

        assert result.exit_code == 0, result.output
        assert "Short Break (5 min)" in result.output
        session = app_context.store.get_open_session()
        assert session.kind == "break"
        assert session.category == "short_break"


class TestLog:
    def test_shows_events(self, app_context, clock):
        _invoke(app_context, "start")
        clock.advance(60)
        _invoke(app_context, "interrupt", "--note", "doorbell")
        session_id = app_context.store.get_open_session().id

        result = _invoke(app_context, "log", session_id[:8])

        assert result.exit_code == 0, result.output
        assert "start" in result.output
        assert "doorbell" in result.output
        assert "differs" not in result.output

    def test_unknown_session(self, app_context):
        result = _invoke(app_context, "log", "nothing")
        assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_watch_without_session(app_context):
    result = _invoke(app_context, "watch")
    assert result.exit_code == exit_codes.ERROR_NOT_FOUND
