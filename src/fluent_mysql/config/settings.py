"""
Configuration management for fluent-mysql.

This module provides environment-based connection settings using Pydantic
BaseSettings, so a ``Database`` can be opened without explicit arguments in
development, testing and production environments.

Environment variables use the ``DB_`` prefix (``DB_HOST``, ``DB_USER``,
``DB_PASS``, ``DB_NAME``, ``DB_PORT``, ``DB_CHARSET``, ``DB_PREFIX``).
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENV_FILE = Path.cwd() / ".env"
ENV_FILE_OVERRIDE = os.getenv("FLUENT_MYSQL_ENV_FILE")
if ENV_FILE_OVERRIDE:
    SETTINGS_ENV_FILE = Path(ENV_FILE_OVERRIDE).expanduser()
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Connection and diagnostics settings with environment variable support.

    Every field can be overridden by a ``DB_``-prefixed environment variable
    or by the ``.env`` file. The password is read from ``DB_PASS`` (or
    ``DB_PASSWORD``).
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    host: str = Field(default="", description="MySQL server host")
    port: int = Field(default=3306, description="MySQL server port")
    user: str = Field(default="", description="MySQL user")
    password: str = Field(
        default="",
        validation_alias=AliasChoices("DB_PASS", "DB_PASSWORD"),
        description="MySQL password",
    )
    name: str = Field(default="", description="Default database (schema) name")
    charset: str = Field(default="utf8mb4", description="Connection character set")
    prefix: str = Field(default="", description="Prefix prepended to table names")
    connect_timeout: int = Field(
        default=10, description="Connection timeout in seconds"
    )

    trace_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("DB_TRACE", "DB_TRACE_ENABLED"),
        description="Record a trace entry for every executed statement",
    )
    trace_strip_prefix: str = Field(
        default="",
        description="Path prefix removed from trace caller descriptions",
    )

    @property
    def has_connection_params(self) -> bool:
        """True when a server host is configured."""
        return bool(self.host)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
