"""Application configuration using Pydantic settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class TelegramConfig(BaseModel):
    """How the bot talks to the Telegram Bot API."""

    api_base: str = "https://api.telegram.org"
    poll_timeout: int = 60
    request_timeout: float = 30.0
    poll_retry_delay: float = 3.0


class SupervisorConfig(BaseModel):
    """Restart budget and timings for the lifecycle supervisor."""

    max_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=15.0, ge=0)
    init_timeout: float = Field(default=30.0, gt=0)
    status_buffer: int = Field(default=10, ge=1)
    stop_timeout: float = Field(default=5.0, ge=0)


class Settings(BaseSettings):
    """Central application settings."""

    model_config = SettingsConfigDict(
        env_prefix="XLSBOT_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    telegram_bot_token: str = Field(
        default="",
        validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN", "XLSBOT_TELEGRAM_BOT_TOKEN", "telegram_bot_token"),
    )
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    files_dir: Path = Field(default=Path("files"))
    log_file: Path = Field(default=Path("logs/app.log"))
    fallback_log_file: Path = Field(default=Path("log/log.txt"))
    verbose: bool = False

    def require_token(self) -> str:
        """Return the bot token or fail when it is not configured."""

        token = self.telegram_bot_token.strip()
        if not token:
            raise ConfigError("TELEGRAM_BOT_TOKEN is required but not set")
        return token

    def to_dict(self) -> Dict[str, Any]:
        """Return settings as a dictionary with the token masked."""

        return {
            "telegram_bot_token": "***" if self.telegram_bot_token else "",
            "telegram": self.telegram.model_dump(),
            "supervisor": self.supervisor.model_dump(),
            "files_dir": str(self.files_dir),
            "log_file": str(self.log_file),
            "fallback_log_file": str(self.fallback_log_file),
            "verbose": self.verbose,
        }


def load_settings(path: Optional[Path] = None, **overrides: Any) -> Settings:
    """
    Build settings from the environment, overlaying the JSON file at *path* if provided.

    Keyword *overrides* win over both the file and the environment. Unspecified fields
    fall back to the defaults declared on the models above.
    """
    payload: Dict[str, Any] = {}
    if path is not None:
        try:
            with Path(path).expanduser().open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

    payload.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return Settings(**payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "SupervisorConfig", "TelegramConfig", "load_settings"]
