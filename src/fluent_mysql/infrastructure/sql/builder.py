"""
Fluent query builder.

``QueryBuilder`` accumulates WHERE/JOIN/ORDER BY/GROUP BY/option state across
chained calls and assembles it into one parameterized statement. Clause
order is fixed: head, JOIN, SET/VALUES data, WHERE, GROUP BY, ORDER BY, LIMIT.

Example:
    >>> qb = QueryBuilder(prefix="app_")
    >>> sql, params = qb.where("customerId", [10, 11], "IN").order_by("id", "ASC").build_select("users")
    >>> sql
    'SELECT * FROM app_users WHERE customerId IN (%s, %s) ORDER BY id ASC'
    >>> params.types, params.values
    ('ii', [10, 11])
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from fluent_mysql.exceptions import InvalidArgumentError

from .core.conditions import NO_VALUE, JoinSpec, RawCondition, ValueCondition
from .core.identifier import clean_group_by, clean_order_by, prefix_table
from .core.markers import RawExpr
from .core.parameters import PLACEHOLDER, BindParams, escape_percent, render_placeholders
from .dialects.mysql import MySQLDialect, NumRows
from .operations.table_data import Compilable, TableDataBuilder, embed_subquery

JOIN_TYPES = ("LEFT", "RIGHT", "OUTER", "INNER", "LEFT OUTER", "RIGHT OUTER")
ORDER_DIRECTIONS = ("ASC", "DESC")
WHERE_CONNECTORS = ("AND", "OR")
QUERY_OPTIONS = (
    "ALL",
    "DISTINCT",
    "DISTINCTROW",
    "HIGH_PRIORITY",
    "STRAIGHT_JOIN",
    "SQL_SMALL_RESULT",
    "SQL_BIG_RESULT",
    "SQL_BUFFER_RESULT",
    "SQL_CACHE",
    "SQL_NO_CACHE",
    "SQL_CALC_FOUND_ROWS",
    "LOW_PRIORITY",
    "IGNORE",
    "QUICK",
)

_IN_OPERATORS = ("in", "not in")
_BETWEEN_OPERATORS = ("between", "not between")
_EXISTS_OPERATORS = ("exists", "not exists")

Condition = Union[ValueCondition, RawCondition]
Columns = Union[str, Sequence[str]]


class QueryBuilder:
    """Pending query state plus statement assembly."""

    def __init__(self, prefix: Optional[str] = "", dialect: Optional[MySQLDialect] = None):
        self.prefix = prefix or ""
        self.dialect = dialect or MySQLDialect()
        self._table_data = TableDataBuilder(self.dialect)
        self._where: List[Condition] = []
        self._join: List[JoinSpec] = []
        self._order_by: Dict[str, str] = {}
        self._group_by: List[str] = []
        self._query_options: List[str] = []
        self._params = BindParams()

    # ------------------------------------------------------------------
    # Chainable state
    # ------------------------------------------------------------------

    def set_prefix(self, prefix: Optional[str] = None) -> "QueryBuilder":
        self.prefix = prefix or ""
        return self

    def where(
        self,
        field: str,
        value: Any = NO_VALUE,
        operator: str = "=",
        cond: str = "AND",
    ) -> "QueryBuilder":
        """
        Add a WHERE condition.

        ``value`` may be a single-key mapping ``{operator: value}``. Without a
        value, ``field`` is used as raw SQL; a list value with a plain operator
        binds its items to the ``%s`` placeholders of such raw SQL; any other
        ``%`` in raw SQL is literal. The first condition never carries a
        connector.
        """
        if isinstance(value, Mapping):
            if len(value) != 1:
                raise InvalidArgumentError("WHERE operator mapping must have exactly one key")
            operator, value = next(iter(value.items()))

        connector = cond.strip().upper()
        if connector not in WHERE_CONNECTORS:
            raise InvalidArgumentError(f"Wrong WHERE connector: {cond}")
        if not self._where:
            connector = ""

        operator = operator.strip()
        key = operator.lower()

        if value is NO_VALUE:
            self._where.append(RawCondition(connector, field))
            return self

        if key in _IN_OPERATORS:
            if not isinstance(value, Compilable):
                if not isinstance(value, (list, tuple, set, frozenset)) or not value:
                    raise InvalidArgumentError(f"{operator.upper()} needs a non-empty list or a sub-query")
                value = tuple(value)
        elif key in _BETWEEN_OPERATORS:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidArgumentError(f"{operator.upper()} needs exactly two values")
            value = tuple(value)
        elif key in _EXISTS_OPERATORS:
            if not isinstance(value, Compilable):
                raise InvalidArgumentError(f"{operator.upper()} needs a sub-query")
        elif isinstance(value, (list, tuple)):
            self._where.append(RawCondition(connector, field, tuple(value)))
            return self

        self._where.append(ValueCondition(connector, field, operator, value))
        return self

    def or_where(self, field: str, value: Any = NO_VALUE, operator: str = "=") -> "QueryBuilder":
        return self.where(field, value, operator, "OR")

    def join(self, table: Union[str, Compilable], condition: str, join_type: str = "") -> "QueryBuilder":
        """Add a JOIN; ``join_type`` is one of LEFT, RIGHT, OUTER, INNER, LEFT OUTER, RIGHT OUTER."""
        join_type = join_type.strip().upper()
        if join_type and join_type not in JOIN_TYPES:
            raise InvalidArgumentError(f"Wrong JOIN type: {join_type}")

        if not isinstance(table, Compilable):
            table = prefix_table(table, self.prefix)
        self._join.append(JoinSpec(join_type, table, condition))
        return self

    def order_by(
        self,
        field: str,
        direction: str = "DESC",
        custom_fields: Optional[Iterable[str]] = None,
    ) -> "QueryBuilder":
        """
        Add an ORDER BY entry.

        ``custom_fields`` orders by an explicit value list using ``FIELD()``.
        """
        direction = direction.strip().upper()
        if direction not in ORDER_DIRECTIONS:
            raise InvalidArgumentError(f"Wrong order direction: {direction}")

        field = clean_order_by(field, self.prefix)
        if custom_fields is not None:
            values = '","'.join(clean_order_by(str(value)) for value in custom_fields)
            field = f'FIELD ({field}, "{values}")'

        self._order_by[field] = direction
        return self

    def group_by(self, field: str) -> "QueryBuilder":
        self._group_by.append(clean_group_by(field))
        return self

    def set_query_option(self, options: Union[str, Iterable[str]]) -> "QueryBuilder":
        """Add one or more statement modifiers (DISTINCT, SQL_CALC_FOUND_ROWS, ...)."""
        if isinstance(options, str):
            options = [options]
        for option in options:
            option = option.strip().upper()
            if option not in QUERY_OPTIONS:
                raise InvalidArgumentError(f"Wrong query option: {option}")
            self._query_options.append(option)
        return self

    def with_total_count(self) -> "QueryBuilder":
        return self.set_query_option("SQL_CALC_FOUND_ROWS")

    def reset(self) -> None:
        """Drop all pending state."""
        self._where = []
        self._join = []
        self._order_by = {}
        self._group_by = []
        self._query_options = []
        self._params = BindParams()

    @property
    def params(self) -> BindParams:
        return self._params

    @property
    def query_options(self) -> Tuple[str, ...]:
        return tuple(self._query_options)

    def has_pending_state(self) -> bool:
        return bool(
            self._where
            or self._join
            or self._order_by
            or self._group_by
            or self._query_options
            or self._params
        )

    # ------------------------------------------------------------------
    # Statement assembly
    # ------------------------------------------------------------------

    def build_select(self, table: str, num_rows: NumRows = None, columns: Columns = "*") -> Tuple[str, BindParams]:
        if not columns:
            columns = "*"
        if not isinstance(columns, str):
            columns = ", ".join(columns)
        columns = escape_percent(columns)
        head = self.dialect.build_select(
            prefix_table(table, self.prefix), columns, self._query_options
        )
        return self._assemble(head, num_rows)

    def build_insert(self, table: str, data: Mapping[str, Any]) -> Tuple[str, BindParams]:
        head = self.dialect.build_insert(prefix_table(table, self.prefix), self._query_options)
        return self._assemble(head, insert_data=data)

    def build_update(self, table: str, data: Mapping[str, Any]) -> Tuple[str, BindParams]:
        head = self.dialect.build_update(prefix_table(table, self.prefix), self._query_options)
        return self._assemble(head, update_data=data)

    def build_delete(self, table: str, num_rows: NumRows = None) -> Tuple[str, BindParams]:
        head = self.dialect.build_delete(prefix_table(table, self.prefix), self._query_options)
        return self._assemble(head, num_rows)

    def build_drop(self, table: str) -> Tuple[str, BindParams]:
        return self._assemble(self.dialect.build_drop(prefix_table(table, self.prefix)))

    def build_raw(self, query: str, num_rows: NumRows = None) -> Tuple[str, BindParams]:
        """Append pending clauses to a caller supplied statement."""
        return self._assemble(escape_percent(query), num_rows)

    def _assemble(
        self,
        head: str,
        num_rows: NumRows = None,
        insert_data: Optional[Mapping[str, Any]] = None,
        update_data: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[str, BindParams]:
        self._params = BindParams()
        parts = [head]
        parts.extend(self._build_join())
        if insert_data is not None:
            parts.append(self._table_data.insert_values(insert_data, self._params))
        if update_data is not None:
            parts.append(self._table_data.update_set(update_data, self._params))
        parts.append(self._build_where())
        parts.append(self.dialect.build_group_by(self._group_by))
        parts.append(self.dialect.build_order_by(self._order_by))
        parts.append(self.dialect.build_limit(num_rows))
        return " ".join(part for part in parts if part), self._params

    def _build_join(self) -> List[str]:
        fragments = []
        for spec in self._join:
            if isinstance(spec.table, Compilable):
                table_sql = embed_subquery(spec.table, self._params)
            else:
                table_sql = spec.table
            condition = escape_percent(spec.condition)
            fragments.append(self.dialect.build_join(spec.join_type, table_sql, condition))
        return fragments

    def _build_where(self) -> str:
        if not self._where:
            return ""
        fragments = []
        for condition in self._where:
            lead = f"{condition.connector} " if condition.connector else ""
            if isinstance(condition, RawCondition):
                self._params.extend(condition.params)
                fragments.append(lead + escape_percent(condition.sql))
            else:
                fragments.append(lead + self._render_condition(condition))
        return "WHERE " + " ".join(fragments)

    def _render_condition(self, condition: ValueCondition) -> str:
        field = escape_percent(condition.field)
        operator = condition.operator.upper()
        key = condition.operator.lower()
        value = condition.value

        if key in _IN_OPERATORS:
            if isinstance(value, Compilable):
                return f"{field} {operator} {embed_subquery(value, self._params, with_alias=False)}"
            self._params.extend(value)
            return f"{field} {operator} ({render_placeholders(len(value))})"
        if key in _BETWEEN_OPERATORS:
            self._params.extend(value)
            return f"{field} {operator} {PLACEHOLDER} AND {PLACEHOLDER}"
        if key in _EXISTS_OPERATORS:
            return f"{field} {operator} {embed_subquery(value, self._params, with_alias=False)}".strip()
        if value is None:
            return f"{field} {operator} NULL"
        if isinstance(value, RawExpr):
            self._params.extend(value.params)
            return f"{field} {operator} {escape_percent(value.expr)}"
        if isinstance(value, Compilable):
            return f"{field} {operator} {embed_subquery(value, self._params, with_alias=False)}"
        self._params.add(value)
        return f"{field} {operator} {PLACEHOLDER}"


class SubQuery(QueryBuilder):
    """
    A query built with the fluent API but embedded instead of executed.

    Example:
        >>> ids = SubQuery().where("qty", 2, ">").get("products", columns="userId")
        >>> qb = QueryBuilder().where("id", ids, "IN")
        >>> qb.build_select("users")[0]
        'SELECT * FROM users WHERE id IN (SELECT userId FROM products WHERE qty > %s)'
    """

    def __init__(self, alias: Optional[str] = None, prefix: Optional[str] = "", dialect: Optional[MySQLDialect] = None):
        super().__init__(prefix, dialect)
        self.alias = alias
        self._compiled: Optional[Tuple[str, BindParams]] = None

    def get(self, table: str, num_rows: NumRows = None, columns: Columns = "*") -> "SubQuery":
        """Compile the SELECT for embedding and drop the pending state."""
        try:
            self._compiled = self.build_select(table, num_rows, columns)
        finally:
            self.reset()
        return self

    def compile(self) -> Tuple[str, BindParams]:
        if self._compiled is None:
            raise InvalidArgumentError("Sub-query has no statement; call get() first")
        sql, params = self._compiled
        copy = BindParams()
        copy.merge(params)
        return sql, copy
