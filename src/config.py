"""Application settings loaded from environment variables."""

import logging
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Relay configuration. All values come from environment variables."""

    # Database
    database_path: Path = Field(default=Path("data/relay.db"))

    # Turso (hosted libSQL) — when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # HTTP API
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8080)

    # Scheduler
    scheduler_enabled: bool = Field(default=True)
    scheduler_tick_seconds: float = Field(default=60.0, gt=0)

    # Broadcasts
    broadcast_timeout_seconds: float = Field(default=10.0, gt=0)
    report_source: str = Field(default="reports")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_log_level(self) -> int:
        """Resolve LOG_LEVEL to a logging constant, falling back to INFO."""
        level = logging.getLevelName(self.log_level.strip().upper())
        return level if isinstance(level, int) else logging.INFO


settings = Settings()
