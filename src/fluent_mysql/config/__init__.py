"""Configuration management for fluent-mysql.

Usage:
    >>> from fluent_mysql.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.host, settings.port)
"""

from fluent_mysql.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
