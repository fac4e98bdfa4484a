"""Base configuration with pydantic-settings.

This module provides a base Settings class that tools inherit from.
Each tool defines its own Settings with the fields specific to it.

Usage in a tool:
    from shared.config import BaseSettings
    from pydantic import Field

    class Settings(BaseSettings):
        network_name: str = Field(default="traefik_public")

    settings = Settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Base application settings.

    All fields here are optional with sensible defaults.
    Tools inherit this and add their own fields.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging configuration ===

    service_name: str = Field(
        default="unknown",
        description="Service name for structured logging",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v


def tcp_port_field(default: int = ..., alias: str | None = None, description: str = ""):
    """TCP port field definition (1-65535). Without a default the field is required."""
    return Field(default=default, alias=alias, ge=1, le=65535, description=description)
