"""
Pending clause entries held by the query builder.

WHERE entries are either a ``ValueCondition`` (field, operator and a value to
bind) or a ``RawCondition`` (caller supplied SQL with its own ``%s``
parameters). JOIN entries are ``JoinSpec`` records.
"""

from dataclasses import dataclass
from typing import Any, Tuple


class _NoValue:
    """Marker for a ``where`` call without a value (raw SQL condition)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()


@dataclass(frozen=True)
class ValueCondition:
    connector: str
    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class RawCondition:
    connector: str
    sql: str
    params: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class JoinSpec:
    join_type: str
    table: Any
    condition: str
