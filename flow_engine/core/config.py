"""
Engine configuration.
"""

import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings, read from FLOW_ENGINE_* environment variables or .env."""

    # Traversal
    max_node_visits: int = 100

    # Pause state
    pause_ttl_seconds: int = 7 * 24 * 60 * 60
    pause_key_prefix: str = "flow_engine:paused:"
    redis_url: str = "redis://localhost:6379/0"

    # Logging
    log_level: str = "INFO"
    log_format: str = "simple"

    # Bricks
    builtin_bricks_enabled: bool = True

    @field_validator("max_node_visits")
    @classmethod
    def validate_max_node_visits(cls, v):
        if v < 1:
            raise ValueError("max_node_visits must be at least 1")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("simple", "json", "standard"):
            raise ValueError("log_format must be one of: simple, json, standard")
        return v

    class Config:
        env_prefix = "FLOW_ENGINE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
