"""Settings for Wasit.

Values come from (lowest to highest priority) field defaults, the JSON file at
``~/.wasit/config.json`` and ``WASIT_*`` environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Return the config directory, creating it on first use."""
    override = os.environ.get("WASIT_CONFIG_DIR", "").strip()
    config_dir = Path(override).expanduser() if override else Path.home() / ".wasit"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


class Settings(BaseSettings):
    """Runtime settings shared by discovery, dispatch and the CLI."""

    model_config = SettingsConfigDict(env_prefix="WASIT_", extra="ignore")

    gateway_url: str = Field(
        default="http://127.0.0.1:4000",
        description="Base URL of the message gateway that fronts remote processes",
    )
    discovery_timeout_ms: int = Field(default=10_000, gt=0)
    execution_timeout_ms: int = Field(default=30_000, gt=0)
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    match_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    large_amount_threshold: float = Field(
        default=1_000_000,
        description="Amounts above this escalate risk to high",
    )
    high_value_threshold: float = Field(
        default=100_000,
        description="Amounts above this require confirmation",
    )
    verify_amount_threshold: float = Field(
        default=10_000,
        description="Amounts above this escalate risk to at least medium",
    )
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from the config file, letting the environment win."""
        path = get_config_path()
        file_values: dict = {}
        if path.exists():
            try:
                file_values = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Ignoring unreadable config file %s: %s", path, exc)
                file_values = {}
        env_keys = {
            name
            for name in cls.model_fields
            if f"WASIT_{name.upper()}" in os.environ
        }
        overrides = {k: v for k, v in file_values.items() if k in cls.model_fields and k not in env_keys}
        return cls(**overrides)

    def save(self) -> Path:
        path = get_config_path()
        path.write_text(json.dumps(self.model_dump(), indent=2), encoding="utf-8")
        return path


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.load()
