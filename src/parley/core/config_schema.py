"""Pydantic models for config and bot settings validation.

``BotSettings`` is what a bot validates at construction time.
``ParleyConfig`` is the typed view returned by ``Config.validated()``;
dict-based access on ``Config`` keeps working unchanged.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class BotSettings(BaseModel):
    """Settings handed to a bot constructor."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    credentials: dict[str, Any] = {}
    webhook_endpoint: str | None = None

    @field_validator("webhook_endpoint")
    @classmethod
    def _strip_slashes(cls, v: str | None) -> str | None:
        if v is None:
            return v
        endpoint = v.strip().strip("/")
        if not endpoint:
            raise ValueError("webhook_endpoint must not be empty")
        return endpoint


class LoggingConfig(BaseModel):
    """Loguru sink settings."""

    level: str = "WARNING"
    file: str | None = None
    only_bots: list[str] | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _known_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.upper()
            if v not in _LOG_LEVELS:
                raise ValueError(f"unknown log level {v!r}, expected one of {_LOG_LEVELS}")
        return v

    @field_validator("only_bots", mode="before")
    @classmethod
    def _split_env_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        return v


class ParleyConfig(BaseModel):
    """Root config model."""

    model_config = ConfigDict(extra="allow")

    logging: LoggingConfig = LoggingConfig()
    bots: dict[str, BotSettings] = {}
