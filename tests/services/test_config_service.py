"""Tests for ConfigService."""

import json
import stat

import pytest
from pydantic import ValidationError

from pomotrack_cli.services.config_service import ConfigService, get_config_service


def test_first_load_creates_defaults(config_service, isolated_dirs):
    config = config_service.config
    assert config.timer.focus_minutes == 25
    assert config.device_id
    saved = json.loads((isolated_dirs / "config.json").read_text())
    assert saved["device_id"] == config.device_id


def test_device_id_is_stable(config_service):
    again = ConfigService()
    assert again.load_config().device_id == config_service.config.device_id


def test_get_dotted_key(config_service):
    assert config_service.get("timer.short_break_minutes") == 5
    assert config_service.get("stats.score_weights.completion") == 1.0


def test_get_unknown_key(config_service):
    with pytest.raises(KeyError):
        config_service.get("timer.nope")
    with pytest.raises(KeyError):
        config_service.get("stats.score_weights.nope")


def test_set_persists(config_service):
    config_service.set("timer.focus_minutes", 50)

    assert config_service.config.timer.focus_minutes == 50
    assert ConfigService().load_config().timer.focus_minutes == 50


def test_set_coerces_and_validates(config_service):
    config_service.set("sync.max_attempts", "3")
    assert config_service.config.sync.max_attempts == 3

    with pytest.raises(ValidationError):
        config_service.set("timer.focus_minutes", 0)
    with pytest.raises(ValidationError):
        config_service.set("stats.timezone", "Mars/Olympus_Mons")
    assert config_service.config.timer.focus_minutes == 25


def test_set_unknown_key(config_service):
    with pytest.raises(KeyError):
        config_service.set("timer.nope", 1)
    with pytest.raises(KeyError):
        config_service.set("nope.deeper", 1)


def test_set_new_score_weight(config_service):
    config_service.set("stats.score_weights.deep_work", 2.0)
    assert config_service.config.stats.score_weights["deep_work"] == 2.0


def test_reset_key(config_service):
    config_service.set("goals.daily_sessions", 12)
    config_service.reset("goals.daily_sessions")
    assert config_service.config.goals.daily_sessions == 8


def test_reset_section(config_service):
    config_service.set("goals.daily_sessions", 12)
    config_service.set("goals.weekly_minutes", 10)
    config_service.reset("goals")
    assert config_service.config.goals.daily_sessions == 8
    assert config_service.config.goals.weekly_minutes == 1000


def test_reset_all_keeps_device_id(config_service):
    device_id = config_service.config.device_id
    config_service.set("timer.focus_minutes", 50)

    config_service.reset()

    assert config_service.config.timer.focus_minutes == 25
    assert config_service.config.device_id == device_id


def test_corrupted_config(isolated_dirs):
    isolated_dirs.mkdir(parents=True, exist_ok=True)
    (isolated_dirs / "config.json").write_text("{broken")
    with pytest.raises(RuntimeError, match="Failed to load config"):
        ConfigService().load_config()


def test_endpoint_env_override(config_service, monkeypatch):
    default = config_service.config.api.endpoint
    monkeypatch.setenv("POMOTRACK_API_ENDPOINT", "http://localhost:8000/")

    assert config_service.api_endpoint == "http://localhost:8000"

    config_service.set("timer.focus_minutes", 50)
    config_service.reset("timer")

    saved = json.loads(config_service.config_path.read_text())
    assert saved["api"]["endpoint"] == default
    monkeypatch.delenv("POMOTRACK_API_ENDPOINT")
    assert config_service.api_endpoint == default.rstrip("/")


def test_credentials_roundtrip(config_service):
    assert config_service.load_credentials() is None

    config_service.save_credentials("access", "refresh")

    assert config_service.load_credentials() == {"token": "access", "refresh_token": "refresh"}
    mode = stat.S_IMODE(config_service.credentials_path.stat().st_mode)
    assert mode == 0o600

    config_service.clear_credentials()
    assert config_service.load_credentials() is None


def test_token_env_override(config_service, monkeypatch):
    config_service.save_credentials("from-file")
    monkeypatch.setenv("POMOTRACK_API_TOKEN", "from-env")
    assert config_service.load_credentials() == {"token": "from-env"}


def test_get_config_service_is_cached():
    assert get_config_service() is get_config_service()
