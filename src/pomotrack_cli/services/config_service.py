"""Configuration service for Pomotrack CLI.

ConfigService is the single source of truth for configuration. It handles:

- Loading and saving config.json (pydantic ``AppConfig``)
- Dotted-key get/set/reset used by ``pomotrack config``
- API credentials stored next to the config with owner-only permissions
- Environment overrides for the API endpoint and token
"""

from __future__ import annotations

import json
import os
import uuid
from functools import lru_cache
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from pomotrack_cli.models.config_models import AppConfig
from pomotrack_cli.utils.logger import get_logger

ENV_API_ENDPOINT = "POMOTRACK_API_ENDPOINT"
ENV_API_TOKEN = "POMOTRACK_API_TOKEN"

logger = get_logger(__name__)


class ConfigService:
    """Service for loading, saving and editing the application configuration."""

    def __init__(self):
        self.config_dir = Path(user_config_dir("pomotrack_cli"))
        self.config_path = self.config_dir / "config.json"
        self.credentials_path = self.config_dir / "credentials.json"
        self.data_dir = Path(user_data_dir("pomotrack_cli"))

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def database_path(self) -> Path:
        """SQLite file holding sessions, events and the sync queue."""
        if self.config.database_path:
            return Path(self.config.database_path).expanduser()
        return self.data_dir / "pomotrack.db"

    @property
    def api_endpoint(self) -> str:
        """Sync server base URL; $POMOTRACK_API_ENDPOINT wins over config.json."""
        endpoint = os.environ.get(ENV_API_ENDPOINT) or self.config.api.endpoint
        return endpoint.rstrip("/")

    def load_config(self) -> AppConfig:
        """Load configuration from disk, creating defaults on first run."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # Expected on first run
            self._config = AppConfig()
            logger.info("Created default configuration at %s", self.config_path)
        except ValidationError as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        if self._config.device_id is None:
            self._config.device_id = str(uuid.uuid4())
            self.save_config()

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to disk."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, BaseModel):
                if k not in type(value).model_fields:
                    raise KeyError(key)
                value = getattr(value, k)
            elif isinstance(value, dict) and k in value:
                value = value[k]
            else:
                raise KeyError(key)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        The whole config is re-validated so a bad value never reaches disk.
        """
        keys = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                raise KeyError(key)
            current = current[k]
        if keys[-1] not in current and not _is_free_mapping(keys):
            raise KeyError(key)
        current[keys[-1]] = value

        self._config = AppConfig.model_validate(config_dict)
        self.save_config()
        logger.info("Config %s updated", key)

    def reset(self, key: str | None = None) -> None:
        """Reset the whole configuration, or one key, to defaults."""
        if key is None:
            device_id = self.config.device_id
            self._config = AppConfig(device_id=device_id)
            self.save_config()
            return

        default_config = AppConfig()
        value: Any = default_config
        for k in key.split("."):
            if isinstance(value, BaseModel):
                value = getattr(value, k)
            elif isinstance(value, dict):
                value = value[k]
        if isinstance(value, BaseModel):
            value = value.model_dump()
        self.set(key, value)

    def load_credentials(self) -> dict | None:
        """Load API credentials.

        Returns:
            dict with 'token' and optionally 'refresh_token', or None
        """
        token = os.environ.get(ENV_API_TOKEN)
        if token:
            return {"token": token}

        if not self.credentials_path.exists():
            return None

        try:
            with open(self.credentials_path, encoding="utf-8") as f:
                return json.load(f)
        except JSONDecodeError:
            logger.warning("Ignoring corrupted credentials file")
            return None

    def save_credentials(self, access_token: str, refresh_token: str | None = None):
        """Persist API credentials with owner-only permissions."""
        cred_data = {"token": access_token}
        if refresh_token:
            cred_data["refresh_token"] = refresh_token

        self.credentials_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.credentials_path, "w", encoding="utf-8") as f:
            json.dump(cred_data, f, indent=2)

        self.credentials_path.chmod(0o600)

    def clear_credentials(self) -> None:
        if self.credentials_path.exists():
            self.credentials_path.unlink()


def _is_free_mapping(keys: list[str]) -> bool:
    # score_weights accepts arbitrary component names
    return keys[:-1] == ["stats", "score_weights"]


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
