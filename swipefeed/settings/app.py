"""Application settings powered by Pydantic BaseSettings."""

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    db_path: Path = Field(
        default=Path("data/events.sqlite"), validation_alias="SWIPEFEED_DB_PATH"
    )
    config_path: Path | None = Field(
        default=None, validation_alias="SWIPEFEED_CONFIG_PATH"
    )
    log_level: str = Field(default="INFO", validation_alias="SWIPEFEED_LOG_LEVEL")
    log_json: bool = Field(default=True, validation_alias="SWIPEFEED_LOG_JSON")

    def log_level_value(self) -> int:
        """Return the numeric logging level, defaulting to INFO."""
        value = logging.getLevelName(self.log_level.upper())
        return value if isinstance(value, int) else logging.INFO


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
