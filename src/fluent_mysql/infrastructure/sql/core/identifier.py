"""
SQL identifier handling utilities.

Provides quoting and cleaning of MySQL identifiers (table names, column
names, ORDER BY / GROUP BY expressions).
"""

import re
from typing import Optional

_ORDER_BY_UNSAFE = re.compile(r"[^-a-z0-9.(),_`]+", re.IGNORECASE)
_GROUP_BY_UNSAFE = re.compile(r"[^-a-z0-9.(),_]+", re.IGNORECASE)
_QUOTED_QUALIFIER = re.compile(r"(`)([`a-zA-Z0-9_]*\.)")


def quote_identifier(name: str) -> str:
    """
    Quote a MySQL identifier with backticks.

    Examples:
        >>> quote_identifier("loginCount")
        '`loginCount`'
        >>> quote_identifier("col`name")
        '`col``name`'
    """
    escaped = name.replace("`", "``")
    return f"`{escaped}`"


def prefix_table(table: str, prefix: Optional[str] = None) -> str:
    """
    Prepend the configured table prefix.

    Examples:
        >>> prefix_table("users", "app_")
        'app_users'
        >>> prefix_table("users u")
        'users u'
    """
    return f"{prefix or ''}{table}"


def clean_order_by(field: str, prefix: Optional[str] = None) -> str:
    """
    Strip characters not allowed in an ORDER BY expression.

    A back-quoted table qualifier (```users`.id``) receives the table
    prefix; bare aliases (``u.id``) are left untouched.

    Examples:
        >>> clean_order_by("CONCAT(u.login, u.firstName)")
        'CONCAT(u.login,u.firstName)'
        >>> clean_order_by("`users`.id", "app_")
        '`app_users`.id'
    """
    cleaned = _ORDER_BY_UNSAFE.sub("", field)
    if prefix:
        cleaned = _QUOTED_QUALIFIER.sub(lambda m: m.group(1) + prefix + m.group(2), cleaned)
    return cleaned


def clean_group_by(field: str) -> str:
    """
    Strip characters not allowed in a GROUP BY expression.

    Examples:
        >>> clean_group_by("customerId; DROP")
        'customerIdDROP'
    """
    return _GROUP_BY_UNSAFE.sub("", field)
