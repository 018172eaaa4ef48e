"""Logging settings."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Log level and output format."""

    level: str = Field(
        default="INFO",
        description="Root log level",
    )

    format: Literal["console", "json"] = Field(
        default="console",
        description="Console renderer for development, JSON for aggregation",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level
