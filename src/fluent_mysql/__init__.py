"""
fluent-mysql - fluent MySQL query builder and thin execution layer.

Chain WHERE/JOIN/ORDER BY/GROUP BY state on a ``Database`` and finish with a
terminal call (``get``, ``insert``, ``update``, ``delete``...) that builds,
executes and resets in one step.
"""

__version__ = "0.1.0"

from fluent_mysql.config import Settings, get_settings
from fluent_mysql.db import Database
from fluent_mysql.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    InvalidArgumentError,
    QueryExecutionError,
    QueryPrepareError,
    UnsupportedBindTypeError,
)
from fluent_mysql.infrastructure.sql import (
    Increment,
    QueryBuilder,
    RawExpr,
    SubQuery,
    Toggle,
    interval,
)
from fluent_mysql.io.trace import TraceEntry

__all__ = [
    "Database",
    "QueryBuilder",
    "SubQuery",
    "Increment",
    "RawExpr",
    "Toggle",
    "interval",
    "TraceEntry",
    "Settings",
    "get_settings",
    "DatabaseError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "InvalidArgumentError",
    "QueryExecutionError",
    "QueryPrepareError",
    "UnsupportedBindTypeError",
]
