"""Where-clause parser: ``"Status=Done,Priority!=Low"`` → filter predicate."""

from __future__ import annotations

import re

from notion_cli.compiler._compose import compose_filter
from notion_cli.compiler._inference import COMPARISON_SYMBOLS, DEFAULT_RESOLVER, TypeResolver
from notion_cli.compiler._predicates import make_leaf, operator_warning
from notion_cli.schema import CollectionSchema

_OPERATOR_ALTERNATION = "|".join(re.escape(sym) for sym in COMPARISON_SYMBOLS)
_CONDITION_RE = re.compile(rf"^\s*(.+?)\s*({_OPERATOR_ALTERNATION})\s*(.+?)\s*$")


def split_conditions(where: str) -> list[str]:
    return [part.strip() for part in (where or "").split(",") if part.strip()]


def parse_condition(condition: str) -> tuple[str, str, str] | None:
    """Split ``name OP value`` into its three parts, or None if malformed."""
    match = _CONDITION_RE.match(condition)
    if not match:
        return None
    return match.group(1), match.group(2), match.group(3)


def parse_where_clause(
    where: str,
    schema: CollectionSchema,
    *,
    resolver: TypeResolver = DEFAULT_RESOLVER,
) -> tuple[dict | None, list[str]]:
    """Compile a where-clause against *schema*.

    Returns ``(filter, warnings)``. Unknown properties, malformed conditions
    and unparseable numbers are skipped with a warning. ``filter`` is None
    when no condition survived.
    """
    leaves: list[dict] = []
    warnings: list[str] = []
    for condition in split_conditions(where):
        parsed = parse_condition(condition)
        if parsed is None:
            warnings.append(f"Could not parse condition '{condition}', skipping")
            continue
        name, symbol, raw = parsed
        prop = schema.get(name)
        if prop is None:
            warnings.append(f"Property '{name}' not found in schema, skipping")
            continue
        operator = resolver.comparison_operator(symbol, prop.type)
        try:
            operand = resolver.coerce_operand(prop.type, operator, raw, lenient=True)
        except ValueError:
            warnings.append(f"Invalid number '{raw}' for property '{name}', skipping")
            continue
        message = operator_warning(name, prop.type, operator)
        if message:
            warnings.append(message)
        leaves.append(make_leaf(name, prop.type, operator, operand))
    return compose_filter(leaves), warnings
