"""
Fluent MySQL database access.

``Database`` combines the chainable query builder with statement execution,
execution metrics (row counts, last query, last error) and an optional trace
of every executed statement.

Usage:
    >>> db = Database("localhost", "app", "secret", "shop", prefix="t_")  # doctest: +SKIP
    >>> db.where("customerId", [10, 11], "IN").order_by("id", "ASC").get("users")  # doctest: +SKIP
    >>> db.insert("users", {"login": "user1", "loginCount": db.inc()})  # doctest: +SKIP

Statements the server cannot prepare (syntax errors, unknown tables or
columns) raise ``QueryPrepareError``. Other execution errors are recorded and
reported by ``get_last_error()``; ``prepare()`` raises them instead.
"""

import atexit
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pymysql
from pymysql.cursors import DictCursor

from fluent_mysql.config.settings import Settings
from fluent_mysql.exceptions import QueryExecutionError, QueryPrepareError
from fluent_mysql.infrastructure.sql.core import markers
from fluent_mysql.infrastructure.sql.builder import Columns, QueryBuilder, SubQuery
from fluent_mysql.infrastructure.sql.core.parameters import BindParams, escape_percent, replace_placeholders
from fluent_mysql.infrastructure.sql.dialects.mysql import NumRows
from fluent_mysql.io.connectors.mysql_connector import MySQLConnector
from fluent_mysql.io.trace import TraceEntry, TraceRecorder
from fluent_mysql.utils.logging import get_logger

logger = get_logger(__name__)

Row = Dict[str, Any]

# Server errors raised while resolving a statement rather than running it.
PREPARE_ERROR_CODES = frozenset(
    {
        1049,  # unknown database
        1051,  # unknown table (DROP)
        1052,  # ambiguous column
        1054,  # unknown column
        1064,  # syntax error
        1109,  # unknown table in clause
        1146,  # table does not exist
        1149,  # syntax error
    }
)


@dataclass
class _Outcome:
    rows: List[Row]
    rowcount: int
    lastrowid: int


def _error_details(err: pymysql.MySQLError) -> Tuple[int, str]:
    if len(err.args) >= 2 and isinstance(err.args[0], int):
        return err.args[0], str(err.args[1])
    return 0, str(err)


def _is_prepare_error(err: pymysql.MySQLError, errno: int) -> bool:
    return isinstance(err, pymysql.err.ProgrammingError) or errno in PREPARE_ERROR_CODES


class Database(QueryBuilder):
    """
    Fluent query builder bound to one MySQL connection.

    Args:
        host: Server host, a mapping of connection parameters, an open
            PyMySQL connection, or None to read ``DB_*`` settings
        username: MySQL user
        password: MySQL password
        dbname: Default database
        port: Server port (3306)
        charset: Connection character set
        prefix: Table name prefix
        settings: Settings override (defaults to ``get_settings()``)

    Attributes:
        count: Rows returned by the last SELECT or affected by the last write
        total_count: ``FOUND_ROWS()`` of the last ``with_total_count()`` query
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
        self._connector = MySQLConnector(
            host, username, password, dbname, port, charset, prefix, settings=settings
        )
        super().__init__(self._connector.prefix)

        self.count = 0
        self.total_count = 0
        self._last_query: Optional[str] = None
        self._last_error = ""
        self._last_errno = 0
        self._transaction_in_progress = False
        self._trace = TraceRecorder(
            self._connector.settings.trace_enabled,
            self._connector.settings.trace_strip_prefix,
        )
        self._connection = self._connector.connect()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, sql: str, params: BindParams, raise_on_error: bool = False) -> Optional[_Outcome]:
        """Execute one statement.

        Returns None when the server reported an execution error (recorded as
        the last error), unless ``raise_on_error`` asks for an exception.
        """
        self._last_query = replace_placeholders(sql, params.values)
        self._trace.start()
        try:
            with self._connection.cursor(DictCursor) as cursor:
                try:
                    cursor.execute(sql, params.as_tuple())
                except (TypeError, ValueError) as e:
                    self._last_error = str(e)
                    self._last_errno = 0
                    raise QueryPrepareError(
                        f"Unable to bind parameters to MySQL statement ({sql}): {e}", sql
                    ) from e
                rows = list(cursor.fetchall()) if cursor.description else []
                outcome = _Outcome(rows, cursor.rowcount, cursor.lastrowid or 0)
        except pymysql.MySQLError as e:
            errno, message = _error_details(e)
            self._last_error = message
            self._last_errno = errno
            if _is_prepare_error(e, errno):
                error = QueryPrepareError(
                    f"Unable to prepare MySQL statement, check your syntax ({sql}) {message}",
                    sql,
                    errno,
                )
                logger.error("query.failed", **error.to_dict())
                raise error from e

            logger.warning("query.failed", errno=errno, error=message, query=self._last_query)
            if raise_on_error:
                raise QueryExecutionError(
                    f"Database Execution Failed ({errno}): {message}", sql, errno
                ) from e
            return None
        finally:
            self._trace.finish(self._last_query)

        self._last_error = ""
        self._last_errno = 0
        return outcome

    def _found_rows(self) -> int:
        with self._connection.cursor(DictCursor) as cursor:
            cursor.execute("SELECT FOUND_ROWS()")
            row = cursor.fetchone()
        if not row:
            return 0
        return int(next(iter(row.values())))

    def _select(self, sql: str, params: BindParams) -> List[Row]:
        outcome = self._run(sql, params)
        rows = outcome.rows if outcome is not None else []
        self.count = len(rows)
        self.total_count = 0
        if outcome is not None and "SQL_CALC_FOUND_ROWS" in self._query_options:
            self.total_count = self._found_rows()
        return rows

    def get(self, table: str, num_rows: NumRows = None, columns: Columns = "*") -> List[Row]:
        """
        SELECT rows using the pending WHERE/JOIN/GROUP/ORDER state.

        Args:
            table: Table name (the prefix is prepended)
            num_rows: Row count, or ``(count, offset)`` rendered as
                ``LIMIT offset, count`` (the pair is not passed through as
                ``LIMIT first, second``)
            columns: Column list or expression
        """
        try:
            sql, params = self.build_select(table, num_rows, columns)
            return self._select(sql, params)
        finally:
            self.reset()

    def get_one(self, table: str, columns: Columns = "*") -> Optional[Row]:
        rows = self.get(table, 1, columns)
        return rows[0] if rows else None

    def get_value(self, table: str, column: str) -> Any:
        """Return ``column`` of the first matching row, or None."""
        rows = self.get(table, 1, f"{column} AS retval")
        return rows[0]["retval"] if rows else None

    def has(self, table: str) -> bool:
        """True when at least one row of ``table`` matches the pending WHERE state."""
        try:
            self.get_one(table, "1")
        except QueryPrepareError:
            return False
        return self.count >= 1

    def query(self, query: str, num_rows: NumRows = None) -> List[Row]:
        """Run a raw SELECT, appending any pending clauses to it."""
        try:
            sql, params = self.build_raw(query, num_rows)
            return self._select(sql, params)
        finally:
            self.reset()

    def insert(self, table: str, data: Mapping[str, Any]) -> Union[int, bool]:
        """
        INSERT one row.

        Returns:
            The insert id when positive, True when a row was inserted without
            one, False when nothing was inserted (see ``get_last_error``)
        """
        try:
            sql, params = self.build_insert(table, data)
            outcome = self._run(sql, params)
        finally:
            self.reset()

        self.count = outcome.rowcount if outcome is not None else 0
        if self.count < 1:
            return False
        if outcome.lastrowid > 0:
            return outcome.lastrowid
        return True

    def update(self, table: str, data: Mapping[str, Any]) -> bool:
        """UPDATE rows matching the pending WHERE state; ``count`` holds affected rows."""
        try:
            sql, params = self.build_update(table, data)
            outcome = self._run(sql, params)
        finally:
            self.reset()

        self.count = outcome.rowcount if outcome is not None else 0
        return outcome is not None

    def delete(self, table: str, num_rows: NumRows = None) -> bool:
        """
        DELETE rows matching the pending WHERE state.

        ``num_rows`` is a row count, or ``(count, offset)`` rendered as
        ``LIMIT offset, count`` like ``get``.
        """
        try:
            sql, params = self.build_delete(table, num_rows)
            outcome = self._run(sql, params)
        finally:
            self.reset()

        self.count = outcome.rowcount if outcome is not None else 0
        return self.count > 0

    def drop(self, table: str) -> bool:
        """DROP a table. Returns True when the statement succeeded."""
        try:
            sql, params = self.build_drop(table)
            outcome = self._run(sql, params)
        finally:
            self.reset()

        self.count = 0
        return outcome is not None

    def prepare(self, query: str, bind_params: Optional[Sequence[Any]] = None) -> List[Row]:
        """
        Execute a raw statement with positional ``%s`` parameters.

        Any other ``%`` in ``query`` is taken literally.

        Raises:
            QueryPrepareError: If the statement cannot be prepared
            QueryExecutionError: On any execution error
        """
        try:
            params = BindParams()
            if bind_params:
                params.extend(bind_params)
            outcome = self._run(escape_percent(query), params, raise_on_error=True)
            self.count = len(outcome.rows)
            return outcome.rows
        finally:
            self.reset()

    def create_table(self, name: str, fields: Mapping[str, str]) -> List[Row]:
        """CREATE TABLE ``prefix + name`` with an auto-increment ``id`` and ``fields``."""
        sql = self.dialect.build_create_table(self.dialect.qualify(name, self.prefix), fields)
        return self.prepare(sql)

    def sub_query(self, alias: Optional[str] = None) -> SubQuery:
        """Start a sub-query sharing this connection's table prefix."""
        return SubQuery(alias, prefix=self.prefix, dialect=self.dialect)

    # ------------------------------------------------------------------
    # Field-modifier helpers
    # ------------------------------------------------------------------

    @staticmethod
    def inc(num: int = 1) -> markers.Increment:
        return markers.inc(num)

    @staticmethod
    def dec(num: int = 1) -> markers.Increment:
        return markers.dec(num)

    @staticmethod
    def not_(column: Optional[str] = None) -> markers.Toggle:
        return markers.not_(column)

    @staticmethod
    def func(expr: str, bind_params: Optional[Iterable[Any]] = None) -> markers.RawExpr:
        return markers.func(expr, list(bind_params) if bind_params is not None else None)

    @staticmethod
    def now(diff: Optional[str] = None, func: str = "NOW()") -> markers.RawExpr:
        return markers.now(diff, func)

    @staticmethod
    def interval(diff: Optional[str], func: str = "NOW()") -> str:
        return markers.interval(diff, func)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def start_transaction(self) -> None:
        """Disable autocommit; an open transaction is rolled back at interpreter exit."""
        self._connection.autocommit(False)
        self._transaction_in_progress = True
        atexit.register(self._transaction_status_check)
        logger.info("transaction.started")

    def commit(self) -> None:
        self._connection.commit()
        self._end_transaction()
        logger.info("transaction.committed")

    def rollback(self) -> None:
        self._connection.rollback()
        self._end_transaction()
        logger.info("transaction.rolled_back")

    def _end_transaction(self) -> None:
        self._transaction_in_progress = False
        self._connection.autocommit(True)
        atexit.unregister(self._transaction_status_check)

    def _transaction_status_check(self) -> None:
        if not self._transaction_in_progress:
            return
        logger.warning("transaction.rollback_on_exit")
        self.rollback()

    @contextmanager
    def transaction(self) -> Generator["Database", None, None]:
        """Commit on success, roll back and re-raise on error."""
        self.start_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    # ------------------------------------------------------------------
    # Trace and diagnostics
    # ------------------------------------------------------------------

    def set_trace(self, enabled: bool, strip_prefix: Optional[str] = None) -> "Database":
        self._trace.configure(enabled, strip_prefix)
        return self

    def trace_label(self, label: str) -> "Database":
        """Describe the next terminal call as ``label`` in the trace."""
        self._trace.label(label)
        return self

    @property
    def trace(self) -> List[TraceEntry]:
        return self._trace.entries

    def get_last_query(self) -> Optional[str]:
        return self._last_query

    def get_last_error(self) -> str:
        return self._last_error.strip()

    def get_last_errno(self) -> int:
        return self._last_errno

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    @property
    def connection(self) -> pymysql.connections.Connection:
        return self._connection

    def get_insert_id(self) -> int:
        return self._connection.insert_id()

    def escape(self, value: str) -> str:
        return self._connection.escape_string(value)

    def ping(self) -> bool:
        """Liveness probe; never reconnects."""
        try:
            self._connection.ping(reconnect=False)
        except pymysql.MySQLError as e:
            logger.warning("database.ping_failed", error=str(e))
            return False
        return True

    def select_database(self, database: str) -> bool:
        try:
            self._connection.select_db(database)
        except pymysql.MySQLError as e:
            self._last_errno, self._last_error = _error_details(e)
            return False
        return True

    def close(self) -> None:
        """Close the connection and clear the trace.

        An open transaction is discarded by the server; the exit-time
        rollback hook is removed with it.
        """
        if self._transaction_in_progress:
            self._transaction_in_progress = False
            atexit.unregister(self._transaction_status_check)
            logger.warning("transaction.discarded_on_close")
        self._connector.close()
        self._trace.clear()
