"""Process-level settings for safefs."""

import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path("~/.safefs/config.json")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class Settings(BaseSettings):
    """Constants injected into FileOps.

    Values come from SAFEFS_* environment variables, then from an optional
    JSON config file (see load_settings), then from the defaults below.
    """

    new_ext: str = ".__new__"  # Staging file extension for safe writes
    bak_ext: str = ".__bak__"  # Backup file extension for safe writes and reads
    strict_backup_read: bool = False  # Raise instead of returning None on backup read errors
    default_mode: int | None = None  # Permission bits when a call gives none

    @field_validator("default_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip().lower()
            if not text:
                return None
            return int(text[2:] if text.startswith("0o") else text, 8)
        return value

    @model_validator(mode="after")
    def _check_extensions(self) -> "Settings":
        if not self.new_ext or not self.bak_ext:
            raise ValueError("new_ext and bak_ext must be non-empty")
        if self.new_ext == self.bak_ext:
            raise ValueError("new_ext and bak_ext must differ")
        return self

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # Environment beats values loaded from the config file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    class Config:
        env_prefix = "SAFEFS_"


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def get_config_path() -> Path:
    return DEFAULT_CONFIG_PATH.expanduser()


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a JSON config file, overlaid with the environment.

    A missing file yields the defaults. The file is read with safe mode so a
    config left behind by an interrupted safe write is still picked up.
    """
    from safefs.fileops import FileOps

    config_path = path or get_config_path()
    data = FileOps(Settings()).read(config_path, "json", {"safe": True})
    if data is None:
        logger.debug(f"No config at {config_path}, using defaults")
        return Settings()
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    logger.debug(f"Loaded config from {config_path}")
    return Settings(**{_snake_case(key): value for key, value in data.items()})
