"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Designed for a Kubernetes sidecar: the pod manifest sets environment variables.
Only AppSettings is a BaseSettings instance. Endpoint settings are plain
BaseModel classes populated via env_nested_delimiter="__", so PKI__ADDRESS
maps to pki.address, REPO__API_KEY maps to repo.api_key, etc.

Settings are frozen: the composition root builds them once and passes the
values on; nothing reads configuration from ambient state afterwards.
"""

from __future__ import annotations

import re
from datetime import timedelta
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_PLAIN_SECONDS = re.compile(r"\d+(?:\.\d+)?")
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")
_DURATION_UNITS: dict[str, float] = {
    "ms": 0.001,
    "msec": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
}


def parse_duration(value: str) -> timedelta | None:
    """
    Parse a human duration such as "30s", "5min", "1h30m" or "2 days".

    A bare number is taken as seconds. Returns None for anything else, so
    callers can fall back to other formats (ISO-8601).
    """
    text = value.strip().lower()
    if _PLAIN_SECONDS.fullmatch(text):
        return timedelta(seconds=float(text))
    parts = _DURATION_PART.findall(text)
    if not parts or _DURATION_PART.sub("", text).strip():
        return None
    seconds = 0.0
    for amount, unit in parts:
        if unit not in _DURATION_UNITS:
            return None
        seconds += float(amount) * _DURATION_UNITS[unit]
    return timedelta(seconds=seconds)


class StorageAdapter(StrEnum):
    """Where the provisioned artifacts are persisted."""

    LOCAL = "local"
    KUBERNETES = "kubernetes"


class EndpointSettings(BaseModel):
    """A gRPC endpoint and the optional API key sent with every call."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(description="Endpoint address, e.g. http://pki:8080")
    api_key: SecretStr | None = Field(default=None, description="Value of the authorization metadata")

    def api_key_value(self) -> str | None:
        return self.api_key.get_secret_value() if self.api_key else None


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    storage: StorageAdapter = Field(default=StorageAdapter.LOCAL)
    secret_name: str = Field(
        default="wirepact-contracts",
        min_length=1,
        description="Name of the Kubernetes secret (kubernetes storage only)",
    )
    common_name: str = Field(
        default="wirepact-contract-provider",
        min_length=1,
        description="Common name of this provider's private certificate",
    )
    data_dir: Path = Field(default=Path("./data"), description="Base directory for local storage")

    pki: EndpointSettings
    repo: EndpointSettings

    fetch_interval: timedelta | None = Field(
        default=None,
        description="Time between two fetch cycles; unset runs a single cycle",
    )
    grpc_timeout_seconds: float = Field(default=30.0, gt=0)

    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @field_validator("fetch_interval", mode="before")
    @classmethod
    def parse_fetch_interval(cls, value: Any) -> Any:
        """Accept "5min"-style durations; treat an empty string as unset."""
        if isinstance(value, str):
            if not value.strip():
                return None
            parsed = parse_duration(value)
            if parsed is not None:
                return parsed
        return value

    @field_validator("fetch_interval")
    @classmethod
    def require_positive_interval(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value <= timedelta(0):
            raise ValueError(f"fetch_interval must be positive, got {value}")
        return value

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
