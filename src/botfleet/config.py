"""Configuration management for botfleet."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    # Fleet Configuration
    sessions: int = Field(default=2, description="Number of sessions started concurrently")
    primary_index: int = Field(default=0, description="Index of the session that owns the console")
    session_prefix: str = Field(default="bot", description="Session ids are the prefix plus the index")
    cache_dir: Path = Field(default=Path("./data"), description="Directory holding per-session caches")

    # Puppet Configuration
    puppet: str = Field(default="wechaty-puppet-service", description="Puppet used by python-wechaty")
    puppet_token: str | None = Field(None, description="Puppet service token")
    puppet_endpoint: str | None = Field(None, description="Puppet service endpoint")

    # Auto Reply Configuration
    reply_trigger: str = Field(default="^妈妈$", description="Case-insensitive pattern that triggers a reply")
    reply_template: str = Field(default="生的 (from {session_id})", description="Canned reply text")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")

    class Config:
        """Pydantic configuration."""

        env_prefix = "BOTFLEET_"
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"

    def session_ids(self) -> list[str]:
        return [f"{self.session_prefix}{index}" for index in range(self.sessions)]

    def compiled_trigger(self) -> re.Pattern[str]:
        return re.compile(self.reply_trigger, re.IGNORECASE)


def load_settings(**overrides: Any) -> Settings:
    """Load settings from the environment and validate them.

    Args:
        overrides: Field values taking precedence over the environment.
            ``None`` values are ignored.

    Returns:
        Validated settings instance
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = Settings(**updates)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc

    if settings.sessions < 1:
        raise ConfigurationError(f"sessions must be at least 1, got {settings.sessions}")
    if not 0 <= settings.primary_index < settings.sessions:
        raise ConfigurationError(
            f"primary_index {settings.primary_index} is out of range for {settings.sessions} sessions"
        )
    try:
        settings.compiled_trigger()
    except re.error as exc:
        raise ConfigurationError(f"invalid reply_trigger {settings.reply_trigger!r}: {exc}") from exc
    return settings
