"""
Field-modifier markers for INSERT/UPDATE data.

A marker asks the table-data renderer to emit a SQL expression instead of a
bound literal while still binding any values the expression needs:

- ``Increment(1)``          -> ``loginCount + 1``
- ``RawExpr("SHA1(%s)", ("pw",))`` -> ``SHA1(%s)`` with ``"pw"`` bound
- ``Toggle()``              -> ``!active``

The single-key mapping form (``{"[I]": " + 1"}``, ``{"[F]": [expr, params]}``,
``{"[N]": value}``) is accepted as well and converted by ``marker_from_mapping``.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from fluent_mysql.exceptions import InvalidArgumentError

INTERVAL_UNITS = {
    "s": "SECOND",
    "m": "MINUTE",
    "h": "HOUR",
    "d": "DAY",
    "M": "MONTH",
    "Y": "YEAR",
}

_INTERVAL_PATTERN = re.compile(r"([+-]?) ?(\d+) ?([a-zA-Z]?)")
_INCREMENT_PATTERN = re.compile(r"^\s*([+-])\s*(\d+)\s*$")


@dataclass(frozen=True)
class Increment:
    """Add ``delta`` to the current column value (negative to decrement)."""

    delta: int = 1


@dataclass(frozen=True)
class RawExpr:
    """Literal SQL expression with its own ``%s`` parameters."""

    expr: str
    params: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Toggle:
    """Boolean negation of the column itself, or of ``value`` when given."""

    value: Optional[str] = None


Marker = Union[Increment, RawExpr, Toggle]


def inc(num: int = 1) -> Increment:
    return Increment(int(num))


def dec(num: int = 1) -> Increment:
    return Increment(-int(num))


def not_(column: Optional[str] = None) -> Toggle:
    return Toggle(column)


def func(expr: str, bind_params: Optional[Sequence[Any]] = None) -> RawExpr:
    return RawExpr(expr, tuple(bind_params or ()))


def interval(diff: Optional[str], func_: str = "NOW()") -> str:
    """
    Build date arithmetic from a compact interval string.

    ``diff`` looks like ``"1"``, ``"-1h"``, ``"+1Y"`` or ``" - 1 day"``; the
    sign defaults to ``+`` and the unit to days. Supported units are
    ``s, m, h, d, M, Y``.

    Raises:
        InvalidArgumentError: If the unit letter is not supported.

    Examples:
        >>> interval("-1h")
        'NOW() - INTERVAL 1 HOUR'
        >>> interval("+1Y")
        'NOW() + INTERVAL 1 YEAR'
        >>> interval("5M", "expires")
        'expires + INTERVAL 5 MONTH'
        >>> interval(None)
        'NOW()'
    """
    if not diff:
        return func_
    match = _INTERVAL_PATTERN.search(diff)
    if not match:
        return func_

    sign = match.group(1) or "+"
    amount = match.group(2)
    unit = match.group(3) or "d"
    if unit not in INTERVAL_UNITS:
        raise InvalidArgumentError(f"invalid interval type in '{diff}'")
    return f"{func_} {sign} INTERVAL {amount} {INTERVAL_UNITS[unit]}"


def now(diff: Optional[str] = None, func_: str = "NOW()") -> RawExpr:
    """Current time (or ``func_``) shifted by ``diff``, as a marker."""
    return RawExpr(interval(diff, func_))


def marker_from_mapping(value: Mapping[str, Any]) -> Marker:
    """
    Convert the single-key mapping form into a marker.

    Raises:
        InvalidArgumentError: For an unknown operation key or malformed payload.
    """
    if len(value) != 1:
        raise InvalidArgumentError("Wrong operation: expected a single-key mapping")
    key, payload = next(iter(value.items()))

    if key == "[I]":
        match = _INCREMENT_PATTERN.match(str(payload))
        if not match:
            raise InvalidArgumentError(f"Wrong increment expression: {payload!r}")
        delta = int(match.group(2))
        return Increment(-delta if match.group(1) == "-" else delta)
    if key == "[F]":
        if isinstance(payload, str):
            return RawExpr(payload)
        expr = payload[0]
        params = payload[1] if len(payload) > 1 else None
        return RawExpr(expr, tuple(params or ()))
    if key == "[N]":
        return Toggle(str(payload) if payload else None)
    raise InvalidArgumentError(f"Wrong operation: {key}")
