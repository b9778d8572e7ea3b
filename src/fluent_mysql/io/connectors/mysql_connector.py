"""
MySQL connection management.

Resolves connection parameters from explicit arguments, a mapping, the
``DB_*`` environment settings, or adopts an already-open PyMySQL connection.
"""

from typing import Any, Mapping, Optional, Union

import pymysql
from pymysql.charset import charset_by_name
from pymysql.cursors import DictCursor

from fluent_mysql.config.settings import Settings, get_settings
from fluent_mysql.exceptions import ConfigurationError, DatabaseConnectionError
from fluent_mysql.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PORT = 3306

# Accepted spellings for mapping-based configuration.
_MAPPING_KEYS = {
    "host": ("host",),
    "username": ("username", "user"),
    "password": ("password", "pass"),
    "dbname": ("dbname", "name", "database"),
    "port": ("port",),
    "charset": ("charset",),
    "prefix": ("prefix",),
}


def _is_connection(candidate: Any) -> bool:
    return candidate is not None and not isinstance(candidate, (str, Mapping)) and hasattr(candidate, "cursor")


def _from_mapping(values: Mapping[str, Any], key: str) -> Any:
    for alias in _MAPPING_KEYS[key]:
        if alias in values:
            return values[alias]
    return None


class MySQLConnector:
    """
    Connector for a single MySQL connection.

    Args:
        host: Server host, a mapping of connection parameters, an open
            PyMySQL connection, or None to use the ``DB_*`` settings
        username: MySQL user
        password: MySQL password
        dbname: Default database
        port: Server port
        charset: Connection character set
        prefix: Table name prefix
        settings: Settings to fall back on (defaults to ``get_settings()``)
    """

    def __init__(
        self,
        host: Union[str, Mapping[str, Any], Any, None] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        dbname: Optional[str] = None,
        port: Optional[int] = None,
        charset: Optional[str] = None,
        prefix: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.connection: Optional[pymysql.connections.Connection] = None

        if _is_connection(host):
            self.connection = host
            self.host = ""
            self.username = username
            self.password = password
            self.dbname = dbname
            self.port = port or DEFAULT_PORT
            self.charset = charset or self.settings.charset
            self.prefix = prefix or ""
            return

        if isinstance(host, Mapping):
            values = host
            host = _from_mapping(values, "host")
            username = username if username is not None else _from_mapping(values, "username")
            password = password if password is not None else _from_mapping(values, "password")
            dbname = dbname if dbname is not None else _from_mapping(values, "dbname")
            port = port if port is not None else _from_mapping(values, "port")
            charset = charset if charset is not None else _from_mapping(values, "charset")
            prefix = prefix if prefix is not None else _from_mapping(values, "prefix")
        elif host is None and self.settings.has_connection_params:
            host = self.settings.host
            username = username if username is not None else self.settings.user
            password = password if password is not None else self.settings.password
            dbname = dbname if dbname is not None else self.settings.name
            port = port if port is not None else self.settings.port
            prefix = prefix if prefix is not None else self.settings.prefix

        if not host or not isinstance(host, str):
            raise ConfigurationError("No database parameters set")

        self.host = host
        self.username = username or ""
        self.password = password or ""
        self.dbname = dbname or None
        self.port = int(port or DEFAULT_PORT)
        self.charset = charset or self.settings.charset
        self.prefix = prefix or ""

    def connect(self) -> pymysql.connections.Connection:
        """
        Open the connection, or return the adopted one.

        Raises:
            DatabaseConnectionError: If the server is unreachable, rejects the
                credentials, or the charset is unknown
        """
        if self.connection is not None:
            return self.connection

        if charset_by_name(self.charset) is None:
            raise DatabaseConnectionError(f"Unknown connection charset: {self.charset}")

        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.username,
                password=self.password,
                database=self.dbname,
                charset=self.charset,
                cursorclass=DictCursor,
                autocommit=True,
                connect_timeout=self.settings.connect_timeout,
            )
        except pymysql.MySQLError as e:
            logger.error(
                "database.connection_failed",
                host=self.host,
                port=self.port,
                database=self.dbname,
                error=str(e),
            )
            raise DatabaseConnectionError(f"Database Connection Error {e}") from e

        logger.info(
            "database.connected",
            host=self.host,
            port=self.port,
            database=self.dbname,
            user=self.username,
            charset=self.charset,
        )
        return self.connection

    def close(self) -> None:
        """Close the connection if it is still open."""
        if self.connection is not None and getattr(self.connection, "open", True):
            self.connection.close()
            logger.info("database.closed", host=self.host, database=self.dbname)
        self.connection = None
