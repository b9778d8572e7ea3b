"""
Unit tests for MySQLConnector.

Tests parameter resolution and connection management with a mocked PyMySQL.
"""

from unittest.mock import MagicMock, patch

import pymysql
import pytest
from pymysql.cursors import DictCursor

from fluent_mysql.config.settings import Settings
from fluent_mysql.exceptions import ConfigurationError, DatabaseConnectionError
from fluent_mysql.io.connectors.mysql_connector import MySQLConnector


@pytest.fixture
def env_settings():
    """Settings as if DB_* variables were exported."""
    return Settings(
        _env_file=None,
        host="env-host",
        user="env_user",
        password="env_password",
        name="env_db",
        port=3307,
        prefix="env_",
        charset="utf8mb4",
        connect_timeout=5,
    )


@pytest.mark.unit
class TestParameterResolution:
    def test_explicit_arguments(self, settings):
        connector = MySQLConnector("db-host", "app", "secret", "shop", 3310, "utf8", "t_", settings=settings)

        assert connector.host == "db-host"
        assert connector.username == "app"
        assert connector.password == "secret"
        assert connector.dbname == "shop"
        assert connector.port == 3310
        assert connector.charset == "utf8"
        assert connector.prefix == "t_"

    def test_defaults(self, settings):
        connector = MySQLConnector("db-host", settings=settings)

        assert connector.port == 3306
        assert connector.charset == "utf8mb4"
        assert connector.prefix == ""
        assert connector.dbname is None

    def test_mapping(self, settings):
        connector = MySQLConnector(
            {"host": "map-host", "user": "u", "pass": "p", "database": "d", "port": "3311", "prefix": "m_"},
            settings=settings,
        )

        assert connector.host == "map-host"
        assert connector.username == "u"
        assert connector.password == "p"
        assert connector.dbname == "d"
        assert connector.port == 3311
        assert connector.prefix == "m_"

    def test_mapping_explicit_arguments_win(self, settings):
        connector = MySQLConnector({"host": "map-host", "username": "u"}, username="override", settings=settings)
        assert connector.username == "override"

    def test_settings_fallback(self, env_settings):
        connector = MySQLConnector(settings=env_settings)

        assert connector.host == "env-host"
        assert connector.username == "env_user"
        assert connector.password == "env_password"
        assert connector.dbname == "env_db"
        assert connector.port == 3307
        assert connector.prefix == "env_"

    def test_missing_parameters(self, settings):
        with pytest.raises(ConfigurationError, match="No database parameters set"):
            MySQLConnector(settings=settings)

    def test_mapping_without_host(self, settings):
        with pytest.raises(ConfigurationError):
            MySQLConnector({"user": "u"}, settings=settings)

    def test_open_connection_adopted(self, settings, mock_connection):
        connector = MySQLConnector(mock_connection, prefix="t_", settings=settings)

        assert connector.connect() is mock_connection
        assert connector.prefix == "t_"

    def test_uses_cached_settings_by_default(self, env_settings):
        with patch(
            "fluent_mysql.io.connectors.mysql_connector.get_settings",
            return_value=env_settings,
        ):
            connector = MySQLConnector()

        assert connector.host == "env-host"


@pytest.mark.unit
class TestConnect:
    @patch("fluent_mysql.io.connectors.mysql_connector.pymysql.connect")
    def test_connect_success(self, mock_connect, env_settings):
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn
        connector = MySQLConnector(settings=env_settings)

        assert connector.connect() is mock_conn
        mock_connect.assert_called_once_with(
            host="env-host",
            port=3307,
            user="env_user",
            password="env_password",
            database="env_db",
            charset="utf8mb4",
            cursorclass=DictCursor,
            autocommit=True,
            connect_timeout=5,
        )

    @patch("fluent_mysql.io.connectors.mysql_connector.pymysql.connect")
    def test_connect_returns_existing_connection(self, mock_connect, env_settings):
        connector = MySQLConnector(settings=env_settings)
        first = connector.connect()
        second = connector.connect()

        assert first is second
        mock_connect.assert_called_once()

    @patch("fluent_mysql.io.connectors.mysql_connector.pymysql.connect")
    def test_connect_failure(self, mock_connect, env_settings):
        mock_connect.side_effect = pymysql.err.OperationalError(2003, "Can't connect to MySQL server")
        connector = MySQLConnector(settings=env_settings)

        with pytest.raises(DatabaseConnectionError, match="Database Connection Error"):
            connector.connect()

    @patch("fluent_mysql.io.connectors.mysql_connector.pymysql.connect")
    def test_unknown_charset(self, mock_connect, env_settings):
        connector = MySQLConnector(charset="klingon", settings=env_settings)

        with pytest.raises(DatabaseConnectionError, match="Unknown connection charset"):
            connector.connect()
        mock_connect.assert_not_called()

    @patch("fluent_mysql.io.connectors.mysql_connector.pymysql.connect")
    def test_close(self, mock_connect, env_settings):
        mock_conn = MagicMock()
        mock_conn.open = True
        mock_connect.return_value = mock_conn
        connector = MySQLConnector(settings=env_settings)
        connector.connect()

        connector.close()

        mock_conn.close.assert_called_once()
        assert connector.connection is None

    def test_close_skips_already_closed_connection(self, settings, mock_connection):
        mock_connection.open = False
        connector = MySQLConnector(mock_connection, settings=settings)

        connector.close()

        mock_connection.close.assert_not_called()
