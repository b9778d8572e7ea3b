"""Pytest configuration for the unit and MySQL-backed integration suites.

IMPORTANT: .fluent_mysql_test_env is loaded FIRST with override=True so that the
integration suite only ever talks to the server configured there, never to
whatever DB_* variables happen to be exported in the shell.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_TEST_ENV_FILE = Path(__file__).parent.parent / ".fluent_mysql_test_env"
if _TEST_ENV_FILE.exists():
    load_dotenv(_TEST_ENV_FILE, override=True)

import os
import re
import uuid
from typing import Generator
from unittest.mock import MagicMock

import pytest

from fluent_mysql.config import Settings, get_settings

INTEGRATION_OPTION = "run_integration_tests"
INTEGRATION_MARK = "integration"
INTEGRATION_ENV = "RUN_INTEGRATION_TESTS"


def _env_enabled(name: str) -> bool:
    """Return True when the opt-in environment flag is set to '1'."""
    return os.getenv(name) == "1"


def _validate_test_database(name: str) -> bool:
    """Ensure destructive integration tests only run against a test schema.

    Raises:
        RuntimeError: If the database name doesn't match the test pattern
    """
    if os.getenv("FLUENT_MYSQL_SKIP_DB_VALIDATION") == "1":
        return True
    if not name or not re.search(r"(test|tmp|dev|local|sandbox)", name, re.IGNORECASE):
        raise RuntimeError(
            f"Refusing to run tests against non-test database: {name!r}. "
            "Test databases must contain one of: test, tmp, dev, local, sandbox."
        )
    return True


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration-tests",
        action="store_true",
        dest=INTEGRATION_OPTION,
        default=_env_enabled(INTEGRATION_ENV),
        help="Run tests against a live MySQL server "
        "(set RUN_INTEGRATION_TESTS=1 or pass --run-integration-tests).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip the integration suite unless it was asked for."""
    if config.getoption(INTEGRATION_OPTION):
        return
    skip_integration = pytest.mark.skip(
        reason="Set RUN_INTEGRATION_TESTS=1 or pass --run-integration-tests to run against MySQL."
    )
    for item in items:
        if INTEGRATION_MARK in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        host="",
        user="",
        password="",
        name="",
        prefix="",
        charset="utf8mb4",
        trace_enabled=True,
        trace_strip_prefix="",
    )


@pytest.fixture
def mock_cursor() -> MagicMock:
    cursor = MagicMock()
    cursor.description = None
    cursor.fetchall.return_value = []
    cursor.fetchone.return_value = None
    cursor.rowcount = 0
    cursor.lastrowid = 0
    return cursor


@pytest.fixture
def mock_connection(mock_cursor: MagicMock) -> MagicMock:
    """An open PyMySQL-like connection whose cursors are ``mock_cursor``."""
    connection = MagicMock()
    connection.open = True
    connection.cursor.return_value.__enter__.return_value = mock_cursor
    return connection


@pytest.fixture
def db(mock_connection: MagicMock, settings: Settings):
    from fluent_mysql import Database

    return Database(mock_connection, settings=settings)


@pytest.fixture
def mysql_db():
    """A live ``Database`` for the configured test schema, with a scratch prefix."""
    from fluent_mysql import Database

    live = get_settings()
    if not live.has_connection_params:
        pytest.skip("DB_HOST must be set for MySQL-backed tests")
    _validate_test_database(live.name)

    database = Database(prefix=f"t{uuid.uuid4().hex[:8]}_")
    try:
        yield database
    finally:
        database.close()
