"""Core SQL utilities package."""

from .conditions import NO_VALUE, JoinSpec, RawCondition, ValueCondition
from .identifier import clean_group_by, clean_order_by, prefix_table, quote_identifier
from .markers import (
    Increment,
    RawExpr,
    Toggle,
    dec,
    func,
    inc,
    interval,
    marker_from_mapping,
    not_,
    now,
)
from .parameters import (
    PLACEHOLDER,
    BindParams,
    determine_type,
    escape_percent,
    render_placeholders,
    replace_placeholders,
)

__all__ = [
    "NO_VALUE",
    "JoinSpec",
    "RawCondition",
    "ValueCondition",
    "clean_group_by",
    "clean_order_by",
    "prefix_table",
    "quote_identifier",
    "Increment",
    "RawExpr",
    "Toggle",
    "dec",
    "func",
    "inc",
    "interval",
    "marker_from_mapping",
    "not_",
    "now",
    "PLACEHOLDER",
    "BindParams",
    "determine_type",
    "escape_percent",
    "render_placeholders",
    "replace_placeholders",
]
