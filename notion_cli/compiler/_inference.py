"""Value inference and the shared TypeResolver.

Every place that turns a raw command-line string into a typed value
(``--prop``, ``--filter-*``, ``--where``, smart find) goes through one
TypeResolver so the three call sites cannot drift apart.
"""

from __future__ import annotations

import enum
import math
import re

from notion_cli import schema as s
from notion_cli._utils import rich_text

_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$", re.ASCII)
_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}", re.ASCII)


class ValueKind(str, enum.Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    DATE = "date"
    URL = "url"
    EMAIL = "email"
    MULTI_VALUE = "multi_value"
    DEFAULT = "default"


def infer_value_kind(raw: str) -> ValueKind:
    """Classify *raw* by shape alone. First matching rule wins."""
    if raw in ("true", "false"):
        return ValueKind.BOOLEAN
    if _NUMBER_RE.match(raw):
        return ValueKind.NUMBER
    # A comma-joined list of dates is a list, not a single date.
    if _DATE_PREFIX_RE.match(raw) and "," not in raw:
        return ValueKind.DATE
    if raw.startswith(("http://", "https://")):
        return ValueKind.URL
    if "@" in raw and "." in raw:
        return ValueKind.EMAIL
    if "," in raw:
        return ValueKind.MULTI_VALUE
    return ValueKind.DEFAULT


def parse_number(raw) -> float:
    """float(raw), rejecting nan and infinities (not representable in JSON)."""
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"non-finite number: {raw!r}")
    return value


def split_values(raw: str) -> list[str]:
    return [v.strip() for v in raw.split(",") if v.strip()]


# Comparison symbols accepted in --where, longest first so "<=" never lexes as "<".
COMPARISON_SYMBOLS = ("<=", ">=", "!=", "=", "<", ">")

_EQUALITY_OPERATORS = {"=": "equals", "!=": "does_not_equal"}
_DATE_OPERATORS = {
    "<": "before",
    ">": "after",
    "<=": "on_or_before",
    ">=": "on_or_after",
}
_NUMERIC_OPERATORS = {
    "<": "less_than",
    ">": "greater_than",
    "<=": "less_than_or_equal_to",
    ">=": "greater_than_or_equal_to",
}

UNARY_OPERATORS = frozenset({"is_empty", "is_not_empty"})
RELATIVE_DATE_OPERATORS = frozenset(
    {"this_week", "past_week", "past_month", "past_year", "next_week", "next_month", "next_year"}
)


class TypeResolver:
    """Single source of truth for raw-string → typed value conversion."""

    def infer(self, raw: str) -> ValueKind:
        return infer_value_kind(raw)

    # -- write payload values --

    def write_value(self, raw: str) -> dict:
        """Wrap *raw* according to its inferred kind."""
        kind = self.infer(raw)
        if kind is ValueKind.BOOLEAN:
            return {"checkbox": raw == "true"}
        if kind is ValueKind.NUMBER:
            return {"number": float(raw)}
        if kind is ValueKind.DATE:
            return {"date": {"start": raw}}
        if kind is ValueKind.URL:
            return {"url": raw}
        if kind is ValueKind.EMAIL:
            return {"email": raw}
        if kind is ValueKind.MULTI_VALUE:
            return {"multi_select": [{"name": v} for v in split_values(raw)]}
        return {"select": {"name": raw}}

    def write_value_for(self, prop_type: str, raw: str) -> dict | None:
        """Wrap *raw* for a declared property type.

        Returns None for read-only types and for values the type cannot hold,
        so callers can fall back to inference.
        """
        if prop_type in (s.TITLE, s.RICH_TEXT):
            return {prop_type: rich_text(raw)}
        if prop_type == s.NUMBER:
            try:
                return {"number": parse_number(raw)}
            except ValueError:
                return None
        if prop_type == s.CHECKBOX:
            return {"checkbox": raw.strip().lower() == "true"}
        if prop_type in (s.SELECT, s.STATUS):
            return {prop_type: {"name": raw}}
        if prop_type == s.MULTI_SELECT:
            return {"multi_select": [{"name": v} for v in split_values(raw)]}
        if prop_type == s.DATE:
            return {"date": {"start": raw}}
        if prop_type in (s.URL, s.EMAIL, s.PHONE_NUMBER):
            return {prop_type: raw}
        if prop_type in (s.PEOPLE, s.RELATION):
            return {prop_type: [{"id": v} for v in split_values(raw)]}
        if prop_type == s.FILES:
            return {
                "files": [
                    {"name": v.rsplit("/", 1)[-1] or v, "type": "external", "external": {"url": v}}
                    for v in split_values(raw)
                ]
            }
        return None

    # -- filter operands --

    def filter_type(self, raw: str) -> str:
        """Auto-detected filter type: checkbox, number, date, else select."""
        kind = self.infer(raw)
        if kind is ValueKind.BOOLEAN:
            return s.CHECKBOX
        if kind is ValueKind.NUMBER:
            return s.NUMBER
        if kind is ValueKind.DATE:
            return s.DATE
        return s.SELECT

    def coerce_operand(self, prop_type: str, operator: str, raw, *, lenient: bool = False):
        """Convert *raw* into the operand a filter condition expects.

        Raises ValueError when a numeric operand does not parse or is not
        finite. With ``lenient`` the checkbox test ignores case.
        """
        if operator in UNARY_OPERATORS:
            return True
        if operator in RELATIVE_DATE_OPERATORS:
            return {}
        if prop_type == s.NUMBER:
            return parse_number(raw)
        if prop_type == s.CHECKBOX:
            text = str(raw)
            return (text.lower() if lenient else text) == "true"
        return raw

    def comparison_operator(self, symbol: str, prop_type: str) -> str:
        """Map a --where comparison symbol onto a filter operator keyword."""
        if symbol in _EQUALITY_OPERATORS:
            return _EQUALITY_OPERATORS[symbol]
        if prop_type in s.DATE_TYPES:
            return _DATE_OPERATORS[symbol]
        return _NUMERIC_OPERATORS[symbol]


DEFAULT_RESOLVER = TypeResolver()
