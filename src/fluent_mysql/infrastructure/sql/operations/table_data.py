"""
INSERT/UPDATE data rendering.

Turns a ``column -> value`` mapping into the ``(cols) VALUES (...)`` or
``SET col = ...`` fragment, binding plain values and expanding field-modifier
markers and sub-queries inline.
"""

from typing import Any, Mapping, Optional, Protocol, Tuple, runtime_checkable

from ..core.markers import Increment, RawExpr, Toggle, marker_from_mapping
from ..core.parameters import PLACEHOLDER, BindParams, escape_percent


class Dialect(Protocol):
    """Protocol for SQL dialects."""

    name: str

    def quote(self, identifier: str) -> str: ...


@runtime_checkable
class Compilable(Protocol):
    """A sub-query that can be inlined into an outer statement."""

    alias: Optional[str]

    def compile(self) -> Tuple[str, BindParams]: ...


def embed_subquery(subquery: Compilable, params: BindParams, with_alias: bool = True) -> str:
    """Inline ``subquery`` as ``(SELECT ...) [alias]`` and append its params."""
    sql, sub_params = subquery.compile()
    params.merge(sub_params)
    if with_alias and subquery.alias:
        return f"({sql}) {subquery.alias}"
    return f"({sql})"


class TableDataBuilder:
    """
    Renderer for INSERT/UPDATE data.

    Example:
        >>> from fluent_mysql.infrastructure.sql.dialects.mysql import MySQLDialect
        >>> params = BindParams()
        >>> builder = TableDataBuilder(MySQLDialect())
        >>> builder.insert_values({"login": "user1", "loginCount": Increment(1)}, params)
        '(`login`, `loginCount`) VALUES (%s, `loginCount` + 1)'
        >>> params.values
        ['user1']
    """

    def __init__(self, dialect: Dialect):
        self.dialect = dialect

    def insert_values(self, data: Mapping[str, Any], params: BindParams) -> str:
        columns = ", ".join(self.dialect.quote(column) for column in data)
        values = ", ".join(
            self.render_value(column, value, params) for column, value in data.items()
        )
        return f"({columns}) VALUES ({values})"

    def update_set(self, data: Mapping[str, Any], params: BindParams) -> str:
        assignments = ", ".join(
            f"{self.dialect.quote(column)} = {self.render_value(column, value, params)}"
            for column, value in data.items()
        )
        return f"SET {assignments}"

    def render_value(self, column: str, value: Any, params: BindParams) -> str:
        """Render one value, binding whatever it needs into ``params``."""
        if isinstance(value, Compilable):
            return embed_subquery(value, params, with_alias=False)

        if isinstance(value, Mapping):
            value = marker_from_mapping(value)

        if isinstance(value, Increment):
            sign = "-" if value.delta < 0 else "+"
            return f"{self.dialect.quote(column)} {sign} {abs(value.delta)}"
        if isinstance(value, RawExpr):
            params.extend(value.params)
            return escape_percent(value.expr)
        if isinstance(value, Toggle):
            if value.value is None:
                return "!" + self.dialect.quote(column)
            return "!" + escape_percent(value.value)

        params.add(value)
        return PLACEHOLDER
