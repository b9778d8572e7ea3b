"""
SQL parameter binding utilities.

Keeps the positional bind values of a pending statement together with the
MySQL prepared-statement type signature (``s`` string, ``i`` integer,
``d`` double, ``b`` blob), one code per value.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable, List, Tuple

from fluent_mysql.exceptions import UnsupportedBindTypeError

PLACEHOLDER = "%s"

_LITERAL_PERCENT = re.compile(r"%(?!s)")


def determine_type(value: Any) -> str:
    """
    Return the type code used to bind ``value``.

    Raises:
        UnsupportedBindTypeError: For mappings, sequences and other composite
            objects. Sub-query values must be passed as ``SubQuery``.

    Examples:
        >>> determine_type("abc"), determine_type(None)
        ('s', 's')
        >>> determine_type(True), determine_type(7), determine_type(1.5)
        ('i', 'i', 'd')
    """
    if value is None or isinstance(value, (str, datetime, date, time)):
        return "s"
    # bool is an int subclass; both bind as integers
    if isinstance(value, int):
        return "i"
    if isinstance(value, (float, Decimal)):
        return "d"
    if isinstance(value, (bytes, bytearray)):
        return "b"
    raise UnsupportedBindTypeError(f"Unsupported bind type: {type(value).__name__}")


@dataclass
class BindParams:
    """Positional bind values and their type signature.

    Invariant: ``len(types) == len(values)``.
    """

    types: str = ""
    values: List[Any] = field(default_factory=list)

    def add(self, value: Any) -> None:
        """Append one value; the type code is computed before anything is stored."""
        code = determine_type(value)
        self.types += code
        self.values.append(value)

    def extend(self, values: Iterable[Any]) -> None:
        for value in values:
            self.add(value)

    def merge(self, other: "BindParams") -> None:
        """Append an already validated registry (used for sub-queries)."""
        self.types += other.types
        self.values.extend(other.values)

    def as_tuple(self) -> Tuple[Any, ...]:
        """Values for ``cursor.execute``, empty when nothing is bound."""
        return tuple(self.values)

    def clear(self) -> None:
        self.types = ""
        self.values = []

    def __len__(self) -> int:
        return len(self.values)


def render_placeholders(count: int) -> str:
    """
    Build a comma separated placeholder list.

    Examples:
        >>> render_placeholders(3)
        '%s, %s, %s'
    """
    return ", ".join([PLACEHOLDER] * count)


def escape_percent(fragment: str) -> str:
    """
    Double every ``%`` in caller supplied SQL that is not a ``%s`` placeholder.

    Statements always go through PyMySQL's ``%`` formatting, so literal
    percent signs (``LIKE 'adm%'``, ``DATE_FORMAT(d, '%Y')``) must be doubled.
    Pass fragments unescaped; ``%s`` is always a placeholder.

    Examples:
        >>> escape_percent("login LIKE 'adm%' AND id = %s")
        "login LIKE 'adm%%' AND id = %s"
    """
    return _LITERAL_PERCENT.sub("%%", fragment)


def _display_value(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray)):
        return "[binary]"
    return "'" + str(value) + "'"


def replace_placeholders(query: str, values: List[Any]) -> str:
    """
    Substitute bound values into ``query`` for display.

    The result is only used for diagnostics (last query, trace); it is never
    executed. Doubled ``%%`` is shown as a single ``%``.

    Examples:
        >>> replace_placeholders("SELECT * FROM t WHERE a = %s AND b = %s", ["x", None])
        "SELECT * FROM t WHERE a = 'x' AND b = NULL"
        >>> replace_placeholders("SELECT * FROM t WHERE a LIKE 'x%%'", [])
        "SELECT * FROM t WHERE a LIKE 'x%'"
    """
    parts = [part.replace("%%", "%") for part in query.split(PLACEHOLDER)]
    rendered = [parts[0]]
    for index, part in enumerate(parts[1:]):
        if index < len(values):
            rendered.append(_display_value(values[index]))
        else:
            rendered.append(PLACEHOLDER)
        rendered.append(part)
    return "".join(rendered)
