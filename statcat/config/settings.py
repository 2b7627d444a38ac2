"""statcat settings.

Values come from an optional config.json, then from STATCAT_* environment
variables. The Discord credential is read from DISCORD_TOKEN.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from statcat.core.errors import FatalSetupError

DEFAULT_USER_AGENT = "DiscordBot (https://github.com/statcat/statcat, 0.1.0)"


class AppSettings(BaseSettings):
    """Validated statcat configuration.

    Values passed explicitly (or read from config.json) win over the
    environment; anything left unset falls back to STATCAT_* variables.
    """

    database_url: str = "sqlite+aiosqlite:///statcat.db"
    discord_token: str = Field(
        default="",
        validation_alias=AliasChoices("discord_token", "DISCORD_TOKEN"),
    )
    user_agent: str = DEFAULT_USER_AGENT

    # Pagination and transport
    batch_size: int = Field(default=100, ge=1, le=100)
    request_timeout: float = Field(default=30.0, gt=0)

    # Ingest policy
    concurrency: int = Field(default=1, ge=1)
    partial_results: Literal["discard", "persist"] = "discard"
    completion_mode: Literal["watermark", "any_message"] = "watermark"

    # Word statistics output
    chart_dir: str = "charts"

    model_config = SettingsConfigDict(
        env_prefix="STATCAT_",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("discord_token", mode="before")
    @classmethod
    def strip_token(cls, v: object) -> object:
        """Tolerate whitespace around tokens pasted into env files."""
        if isinstance(v, str):
            return v.strip()
        return v

    @classmethod
    def from_json(cls, path: str | Path = "config.json") -> "AppSettings":
        """Build settings from `path`; a missing file means defaults plus env.

        Raises:
            json.JSONDecodeError: The file is not valid JSON
            pydantic.ValidationError: A value is out of range
        """
        source = Path(path)
        if not source.exists():
            return cls()
        overrides = json.loads(source.read_text(encoding="utf-8"))
        return cls(**overrides)

    def require_token(self) -> str:
        """Return the Discord token or fail if none is configured."""
        if not self.discord_token:
            raise FatalSetupError(
                "Expected a discord token in the environment (DISCORD_TOKEN)"
            )
        return self.discord_token


@lru_cache
def get_settings(config_path: str = "config.json") -> AppSettings:
    """Settings for `config_path`, loaded once per process."""
    return AppSettings.from_json(config_path)


def load_config(path: str | Path = "config.json") -> AppSettings:
    """Re-read `path`, dropping whatever get_settings cached."""
    get_settings.cache_clear()
    return AppSettings.from_json(path)
