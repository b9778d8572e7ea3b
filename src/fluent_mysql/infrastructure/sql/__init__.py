"""
SQL module for fluent statement generation.

This module provides the query builder, its MySQL dialect, bind-parameter
bookkeeping and the field-modifier markers used in INSERT/UPDATE data.
"""

from .builder import QueryBuilder, SubQuery
from .core.markers import Increment, RawExpr, Toggle, interval
from .core.parameters import BindParams, replace_placeholders
from .dialects.mysql import MySQLDialect
from .operations.table_data import TableDataBuilder

__all__ = [
    "QueryBuilder",
    "SubQuery",
    "Increment",
    "RawExpr",
    "Toggle",
    "interval",
    "BindParams",
    "replace_placeholders",
    "MySQLDialect",
    "TableDataBuilder",
]
