"""Filter tree composition and facet → filter planning."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from notion_cli import schema as s
from notion_cli.compiler._facets import (
    AssigneeEmptyFacet,
    DateFacet,
    Facet,
    PriorityFacet,
    StatusFacet,
    TagsFacet,
)
from notion_cli.compiler._resolve import resolve_option, resolve_property
from notion_cli.compiler.patterns import DEFAULT_PATTERN_PACK, PatternPack
from notion_cli.exceptions import CliError
from notion_cli.schema import CollectionSchema


def compose_filter(leaves, *, combinator: str = "and") -> dict | None:
    """Combine leaves: none → None, one → itself, more → ``{"and": [...]}``."""
    if combinator != "and":
        raise CliError(
            f"[ERROR] Unsupported filter combinator '{combinator}'. Only 'and' is supported."
        )
    leaves = list(leaves)
    if not leaves:
        return None
    if len(leaves) == 1:
        return leaves[0]
    return {"and": leaves}


@dataclass(frozen=True)
class PlannedFacet:
    """One facet with the property it resolved to and the leaves it produced.

    ``leaves`` is empty when the facet could not be resolved against the
    schema; such facets are dropped from the filter.
    """

    facet: Facet
    property: str | None
    leaves: tuple[dict, ...]

    @property
    def resolved(self) -> bool:
        return bool(self.leaves)

    def as_dict(self) -> dict:
        return {
            **self.facet.as_dict(),
            "property": self.property,
            "resolved": self.resolved,
            "leaves": list(self.leaves),
        }


@dataclass(frozen=True)
class FilterPlan:
    facets: tuple[PlannedFacet, ...]
    filter: dict | None

    @property
    def unresolved(self) -> list[PlannedFacet]:
        return [p for p in self.facets if not p.resolved]


def _local_midnight(now: datetime | None = None) -> str:
    current = now or datetime.now().astimezone()
    return current.replace(hour=0, minute=0, second=0, microsecond=0).isoformat()


def _plan_status(facet: StatusFacet, schema, pack, now):
    prop = resolve_property(schema, (s.STATUS, s.SELECT), pack.hints("status"))
    if prop is None:
        return None, ()
    option = resolve_option(prop, facet.value, pack.status_synonyms)
    if option is None:
        return prop.name, ()
    return prop.name, ({"property": prop.name, prop.type: {"equals": option}},)


def _plan_assignee(facet: AssigneeEmptyFacet, schema, pack, now):
    prop = resolve_property(schema, (s.PEOPLE,), pack.hints("assignee"))
    if prop is None:
        return None, ()
    return prop.name, ({"property": prop.name, "people": {"is_empty": True}},)


def _plan_date(facet: DateFacet, schema, pack, now):
    if facet.mode == "last_edited_today":
        return None, _timestamp_leaf(s.LAST_EDITED_TIME, now)
    if facet.mode == "created_today":
        return None, _timestamp_leaf(s.CREATED_TIME, now)
    prop = resolve_property(schema, (s.DATE,), pack.hints("date"))
    if prop is None:
        return None, ()
    if facet.mode == "this_week":
        return prop.name, ({"property": prop.name, "date": {"this_week": {}}},)
    return prop.name, ({"property": prop.name, "date": {facet.mode: facet.value}},)


def _timestamp_leaf(timestamp: str, now):
    return ({"timestamp": timestamp, timestamp: {"on_or_after": _local_midnight(now)}},)


def _plan_priority(facet: PriorityFacet, schema, pack, now):
    prop = resolve_property(schema, (s.SELECT,), pack.hints("priority"))
    if prop is None:
        return None, ()
    option = resolve_option(prop, facet.value, pack.priority_synonyms)
    if option is None:
        return prop.name, ()
    return prop.name, ({"property": prop.name, "select": {"equals": option}},)


def _plan_tags(facet: TagsFacet, schema, pack, now):
    prop = resolve_property(schema, (s.MULTI_SELECT,), pack.hints("tags"))
    if prop is None:
        return None, ()
    leaves = []
    for tag in facet.values:
        option = resolve_option(prop, tag) if prop.options else tag
        if option is not None:
            leaves.append({"property": prop.name, "multi_select": {"contains": option}})
    return prop.name, tuple(leaves)


_PLANNERS = {
    StatusFacet: _plan_status,
    AssigneeEmptyFacet: _plan_assignee,
    DateFacet: _plan_date,
    PriorityFacet: _plan_priority,
    TagsFacet: _plan_tags,
}

_KIND_ORDER = ("status", "assignee_empty", "date", "priority", "tags")


def plan_facet(
    facet: Facet,
    schema: CollectionSchema,
    pack: PatternPack = DEFAULT_PATTERN_PACK,
    now: datetime | None = None,
) -> PlannedFacet:
    planner = _PLANNERS.get(type(facet))
    if planner is None:
        raise TypeError(f"Unknown facet kind: {type(facet).__name__}")
    prop_name, leaves = planner(facet, schema, pack, now)
    return PlannedFacet(facet=facet, property=prop_name, leaves=leaves)


def plan_facet_filter(
    facets,
    schema: CollectionSchema,
    pack: PatternPack = DEFAULT_PATTERN_PACK,
    now: datetime | None = None,
) -> FilterPlan:
    """Resolve *facets* against *schema* and compose the resulting filter.

    Facets are planned in the order status, assignee, date, priority, tags.
    Unresolved facets are kept in the plan but contribute no leaves.
    """
    ordered = sorted(facets, key=_facet_rank)
    planned = tuple(plan_facet(f, schema, pack, now) for f in ordered)
    leaves = [leaf for p in planned for leaf in p.leaves]
    return FilterPlan(facets=planned, filter=compose_filter(leaves))


def _facet_rank(facet) -> int:
    kind = getattr(facet, "kind", None)
    return _KIND_ORDER.index(kind) if kind in _KIND_ORDER else len(_KIND_ORDER)
