"""Schema-driven resolution of facets onto properties and option names."""

from __future__ import annotations

from notion_cli.compiler.patterns import SynonymGroup
from notion_cli.schema import CollectionSchema, PropertySchema


def resolve_property(schema: CollectionSchema, types, hints) -> PropertySchema | None:
    """Pick the property a facet refers to.

    Tiers, each over the whole schema: exact name match against a hint,
    then substring in either direction, then the first property of an
    allowed type. Names are compared case-insensitively.
    """
    candidates = schema.of_types(types)
    if not candidates:
        return None
    lowered_hints = [h.lower() for h in hints]
    for hint in lowered_hints:
        for prop in candidates:
            if prop.name.lower() == hint:
                return prop
    for hint in lowered_hints:
        for prop in candidates:
            name = prop.name.lower()
            if hint in name or name in hint:
                return prop
    return candidates[0]


def resolve_option(
    prop: PropertySchema, target: str, synonyms: tuple[SynonymGroup, ...] = ()
) -> str | None:
    """Map *target* onto one of *prop*'s declared option names.

    Exact match first, then substring either way, then the synonym groups
    whose variants occur in *target*.
    """
    wanted = (target or "").lower()
    if not wanted:
        return None
    names = prop.option_names
    for name in names:
        if name.lower() == wanted:
            return name
    for name in names:
        lowered = name.lower()
        if wanted in lowered or lowered in wanted:
            return name
    for group in synonyms:
        if not any(v in wanted for v in group.variants):
            continue
        for name in names:
            lowered = name.lower()
            if any(v in lowered for v in group.variants):
                return name
    return None
