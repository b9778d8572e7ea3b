"""Exceptions raised by the query builder and executor.

Structural and configuration problems are raised immediately. Runtime
execution errors are recorded on the ``Database`` instance instead (see
``Database.get_last_error``), except for the raw ``prepare`` entry point which
raises ``QueryExecutionError``.
"""

from typing import Dict, Optional


class DatabaseError(Exception):
    """Base class for all fluent-mysql errors."""


class ConfigurationError(DatabaseError):
    """No usable connection parameters were supplied."""


class DatabaseConnectionError(DatabaseError):
    """The connection could not be opened or its charset could not be set."""


class UnsupportedBindTypeError(DatabaseError, TypeError):
    """A composite value was passed where a scalar bind parameter is expected."""


class InvalidArgumentError(DatabaseError, ValueError):
    """An enumerated argument (join type, direction, option, unit) is unknown."""


class _StatementError(DatabaseError):
    """Structured error for a statement the server rejected."""

    def __init__(self, message: str, query: str, errno: Optional[int] = None):
        self.query = query
        self.errno = errno
        super().__init__(message)

    def to_dict(self) -> Dict[str, object]:
        """Convert to structured dict for logging."""
        return {
            "error_type": type(self).__name__,
            "errno": self.errno,
            "query": self.query,
            "message": str(self),
        }


class QueryPrepareError(_StatementError):
    """The statement failed to prepare (syntax error, unknown table or column)."""


class QueryExecutionError(_StatementError):
    """The statement failed during execution (raised by ``Database.prepare``)."""
