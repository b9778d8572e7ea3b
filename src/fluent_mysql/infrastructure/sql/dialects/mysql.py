"""
MySQL-specific SQL dialect implementation.

Provides the statement heads and clause fragments the query builder
assembles: SELECT/INSERT/UPDATE/DELETE/DROP heads, JOIN, GROUP BY, ORDER BY
and LIMIT.
"""

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from fluent_mysql.exceptions import InvalidArgumentError

from ..core.identifier import prefix_table, quote_identifier

NumRows = Union[int, Sequence[int], None]


class MySQLDialect:
    """MySQL SQL dialect implementation."""

    name = "mysql"

    def quote(self, identifier: str) -> str:
        """Quote an identifier using MySQL syntax (backticks)."""
        return quote_identifier(identifier)

    def qualify(self, table: str, prefix: Optional[str] = None) -> str:
        """Apply the table-name prefix."""
        return prefix_table(table, prefix)

    @staticmethod
    def _with_options(keyword: str, options: Iterable[str]) -> str:
        return " ".join([keyword, *options])

    def build_select(self, table: str, columns: str, options: Iterable[str] = ()) -> str:
        """
        Build a SELECT head.

        Examples:
            >>> MySQLDialect().build_select("users", "*", ["SQL_CALC_FOUND_ROWS"])
            'SELECT SQL_CALC_FOUND_ROWS * FROM users'
        """
        return f"{self._with_options('SELECT', options)} {columns} FROM {table}"

    def build_insert(self, table: str, options: Iterable[str] = ()) -> str:
        return f"{self._with_options('INSERT', options)} INTO {table}"

    def build_update(self, table: str, options: Iterable[str] = ()) -> str:
        return f"{self._with_options('UPDATE', options)} {table}"

    def build_delete(self, table: str, options: Iterable[str] = ()) -> str:
        return f"{self._with_options('DELETE', options)} FROM {table}"

    def build_drop(self, table: str) -> str:
        return f"DROP TABLE {table}"

    def build_join(self, join_type: str, table_sql: str, condition: str) -> str:
        """
        Build one JOIN fragment; an empty ``join_type`` gives a plain JOIN.

        Examples:
            >>> MySQLDialect().build_join("LEFT", "users u", "p.customerId=u.customerId")
            'LEFT JOIN users u ON p.customerId=u.customerId'
        """
        keyword = f"{join_type} JOIN" if join_type else "JOIN"
        return f"{keyword} {table_sql} ON {condition}"

    def build_group_by(self, fields: List[str]) -> str:
        if not fields:
            return ""
        return "GROUP BY " + ", ".join(fields)

    def build_order_by(self, order_by: Mapping[str, str]) -> str:
        """
        Build ORDER BY from a field -> direction mapping.

        ``rand()`` is emitted without a direction.
        """
        if not order_by:
            return ""
        items = []
        for field, direction in order_by.items():
            if field.replace(" ", "").lower() == "rand()":
                items.append("rand()")
            else:
                items.append(f"{field} {direction}")
        return "ORDER BY " + ", ".join(items)

    def build_limit(self, num_rows: NumRows) -> str:
        """
        Build LIMIT from a row count or a ``(count, offset)`` pair.

        Examples:
            >>> MySQLDialect().build_limit(10)
            'LIMIT 10'
            >>> MySQLDialect().build_limit((10, 20))
            'LIMIT 20, 10'
        """
        if num_rows is None:
            return ""
        if isinstance(num_rows, (list, tuple)):
            count, offset = _count_offset(num_rows)
            return f"LIMIT {offset}, {count}"
        return f"LIMIT {int(num_rows)}"

    def build_create_table(self, table: str, columns: Mapping[str, str]) -> str:
        """
        Build CREATE TABLE with an auto-increment ``id`` primary key.

        Examples:
            >>> MySQLDialect().build_create_table("users", {"login": "CHAR(10) NOT NULL"})
            'CREATE TABLE users (id INT(9) UNSIGNED PRIMARY KEY AUTO_INCREMENT, login CHAR(10) NOT NULL)'
        """
        definitions = ["id INT(9) UNSIGNED PRIMARY KEY AUTO_INCREMENT"]
        definitions.extend(f"{name} {definition}" for name, definition in columns.items())
        return f"CREATE TABLE {table} ({', '.join(definitions)})"


def _count_offset(num_rows: Sequence[int]) -> Tuple[int, int]:
    if len(num_rows) != 2:
        raise InvalidArgumentError(f"Expected (count, offset), got {tuple(num_rows)!r}")
    return int(num_rows[0]), int(num_rows[1])
