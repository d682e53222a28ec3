"""Filter predicate encoder: (property, operator, value) → one typed leaf."""

from __future__ import annotations

from notion_cli import schema as s
from notion_cli.compiler._inference import DEFAULT_RESOLVER, TypeResolver
from notion_cli.exceptions import CliError
from notion_cli.schema import CollectionSchema

_TEXT_OPERATORS = frozenset(
    {
        "equals",
        "does_not_equal",
        "contains",
        "does_not_contain",
        "starts_with",
        "ends_with",
        "is_empty",
        "is_not_empty",
    }
)
_NUMBER_OPERATORS = frozenset(
    {
        "equals",
        "does_not_equal",
        "greater_than",
        "less_than",
        "greater_than_or_equal_to",
        "less_than_or_equal_to",
        "is_empty",
        "is_not_empty",
    }
)
_DATE_OPERATORS = frozenset(
    {
        "equals",
        "before",
        "after",
        "on_or_before",
        "on_or_after",
        "is_empty",
        "is_not_empty",
        "this_week",
        "past_week",
        "past_month",
        "past_year",
        "next_week",
        "next_month",
        "next_year",
    }
)
_CHECKBOX_OPERATORS = frozenset({"equals", "does_not_equal"})
_OPTION_OPERATORS = frozenset({"equals", "does_not_equal", "is_empty", "is_not_empty"})
_LIST_OPERATORS = frozenset({"contains", "does_not_contain", "is_empty", "is_not_empty"})

# Filter operator vocabulary per property type.
FILTER_OPERATORS: dict[str, frozenset[str]] = {
    s.TITLE: _TEXT_OPERATORS,
    s.RICH_TEXT: _TEXT_OPERATORS,
    s.URL: _TEXT_OPERATORS,
    s.EMAIL: _TEXT_OPERATORS,
    s.PHONE_NUMBER: _TEXT_OPERATORS,
    s.NUMBER: _NUMBER_OPERATORS,
    s.DATE: _DATE_OPERATORS,
    s.CREATED_TIME: _DATE_OPERATORS,
    s.LAST_EDITED_TIME: _DATE_OPERATORS,
    s.CHECKBOX: _CHECKBOX_OPERATORS,
    s.SELECT: _OPTION_OPERATORS,
    s.STATUS: _OPTION_OPERATORS,
    s.MULTI_SELECT: _LIST_OPERATORS,
    s.PEOPLE: _LIST_OPERATORS,
    s.RELATION: _LIST_OPERATORS,
    s.CREATED_BY: _LIST_OPERATORS,
    s.LAST_EDITED_BY: _LIST_OPERATORS,
}


def operator_warning(prop_name: str, prop_type: str, operator: str) -> str | None:
    """Message for an operator outside a known type's vocabulary, else None."""
    allowed = FILTER_OPERATORS.get(prop_type)
    if allowed is None or operator in allowed:
        return None
    return (
        f"Operator '{operator}' is not valid for {prop_type} property '{prop_name}'. "
        f"Valid: {', '.join(sorted(allowed))}"
    )


def make_leaf(prop: str, prop_type: str, operator: str, operand) -> dict:
    return {"property": prop, prop_type: {operator: operand}}


def leaf_type(leaf: dict) -> str | None:
    """Type tag of a property or timestamp leaf."""
    for key in leaf:
        if key not in ("property", "timestamp"):
            return key
    return None


def build_filter_leaf(
    prop: str,
    operator: str,
    value,
    prop_type: str | None = None,
    schema: CollectionSchema | None = None,
    *,
    resolver: TypeResolver = DEFAULT_RESOLVER,
) -> dict:
    """Build one typed filter leaf.

    Type selection: an explicit *prop_type* wins, then the declared type
    of *prop* in *schema*, then auto-detection from the value's shape
    (checkbox, number, date, else select).

    Raises CliError when a number-typed operand does not parse.
    """
    if prop_type:
        ptype = s.normalize_type(prop_type)
    else:
        declared = schema.get(prop) if schema is not None else None
        ptype = declared.type if declared is not None else resolver.filter_type(str(value))
    try:
        operand = resolver.coerce_operand(ptype, operator, value)
    except ValueError:
        raise CliError(
            f"[ERROR] Invalid number '{value}' for filter on '{prop}'."
        ) from None
    return make_leaf(prop, ptype, operator, operand)
