"""
Configuration Management

Centralized configuration using Pydantic Settings.

Every value can be overridden through the environment (NAMEDSQL_ prefix) or a
.env file. Load functions accept an explicit Settings instance as well, which
takes precedence over the process-wide one.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Default ceiling for a single source line, in characters
DEFAULT_MAX_LINE_LENGTH = 64 * 1024


class Settings(BaseSettings):
    """Library settings."""

    model_config = SettingsConfigDict(
        env_prefix="NAMEDSQL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Sources
    extension: str = Field(default=".sql")
    encoding: str = Field(default="utf-8")
    max_line_length: Optional[int] = Field(default=DEFAULT_MAX_LINE_LENGTH, ge=0)
    recursive: bool = Field(default=False)

    # Templating
    templating: bool = Field(default=True)
    strict_undefined: bool = Field(default=False)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings (for testing)."""
    global _settings
    _settings = None
