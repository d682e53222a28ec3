"""Natural-language facets and the extractor that finds them in a query."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Union

from notion_cli.compiler.patterns import DEFAULT_PATTERN_PACK, PatternPack, trigger_matches


@dataclass(frozen=True)
class StatusFacet:
    kind: ClassVar[str] = "status"
    value: str

    def as_dict(self) -> dict:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class AssigneeEmptyFacet:
    kind: ClassVar[str] = "assignee_empty"

    def as_dict(self) -> dict:
        return {"kind": self.kind, "value": "is_empty"}


@dataclass(frozen=True)
class DateFacet:
    kind: ClassVar[str] = "date"
    mode: str
    value: str | None = None

    def as_dict(self) -> dict:
        return {"kind": self.kind, "mode": self.mode, "value": self.value}


@dataclass(frozen=True)
class PriorityFacet:
    kind: ClassVar[str] = "priority"
    value: str

    def as_dict(self) -> dict:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class TagsFacet:
    kind: ClassVar[str] = "tags"
    values: tuple[str, ...]

    def as_dict(self) -> dict:
        return {"kind": self.kind, "values": list(self.values)}


Facet = Union[StatusFacet, AssigneeEmptyFacet, DateFacet, PriorityFacet, TagsFacet]


def _today_utc() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _first_rule(rules, text):
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


def extract_tags(query: str, pack: PatternPack = DEFAULT_PATTERN_PACK) -> tuple[str, ...]:
    if not pack.tag_keywords:
        return ()
    match = pack.tag_regex.search(query)
    if not match:
        return ()
    return tuple(t for t in re.split(r"[,\s]+", match.group(1).strip()) if t)


def extract_facets(
    query: str,
    pack: PatternPack = DEFAULT_PATTERN_PACK,
    today: str | None = None,
) -> list[Facet]:
    """Find status, assignee, date, priority and tag facets in *query*.

    Status, date and priority take the first rule that matches, in the
    pack's declaration order. *today* (``YYYY-MM-DD``) defaults to the
    current UTC date.
    """
    text = (query or "").lower()
    facets: list[Facet] = []

    status = _first_rule(pack.status, text)
    if status is not None:
        facets.append(StatusFacet(status.value))

    if any(trigger_matches(t, text) for t in pack.assignee_empty):
        facets.append(AssigneeEmptyFacet())

    date = _first_rule(pack.date, text)
    if date is not None:
        if date.value in ("before", "equals"):
            facets.append(DateFacet(date.value, today or _today_utc()))
        else:
            facets.append(DateFacet(date.value))

    priority = _first_rule(pack.priority, text)
    if priority is not None:
        facets.append(PriorityFacet(priority.value))

    tags = extract_tags(query or "", pack)
    if tags:
        facets.append(TagsFacet(tags))

    return facets
