"""Configuration module for the litestate engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from litestate.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    ENV: str
    LOG_LEVEL: str
    LOG_FILE: str
    TIMESTAMP_SUFFIX: str
    NAIVE_TIMESTAMPS: bool

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("LITESTATE_ENV", "development")).strip().lower()

    config = Config(
        ENV=resolved_env,
        LOG_LEVEL=os.getenv("LITESTATE_LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LITESTATE_LOG_FILE", ""),
        TIMESTAMP_SUFFIX=os.getenv("LITESTATE_TIMESTAMP_SUFFIX", "_at"),
        NAIVE_TIMESTAMPS=_as_bool(os.getenv("LITESTATE_NAIVE_TIMESTAMPS")),
    )
    _validate_config(config)
    return config


def _validate_config(config: Config) -> None:
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LITESTATE_LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if not config.TIMESTAMP_SUFFIX:
        raise ConfigurationError("LITESTATE_TIMESTAMP_SUFFIX must not be empty.")
    if not config.TIMESTAMP_SUFFIX.replace("_", "a").isalnum():
        raise ConfigurationError("LITESTATE_TIMESTAMP_SUFFIX may only contain letters, digits and underscores.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
