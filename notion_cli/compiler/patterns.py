"""Pattern pack registry: bilingual trigger tables for smart find.

Standalone data module (no project imports besides exceptions). Adding a
language means shipping a JSON pack and merging it onto
DEFAULT_PATTERN_PACK with ``load_pattern_pack``; the extractor and the
resolvers never change.

Rule order is significant: status, date and priority are first-match-wins
in declaration order.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from typing import Union

from notion_cli.exceptions import CliError

# Date facet modes the filter composer knows how to build.
DATE_MODES = ("before", "equals", "this_week", "last_edited_today", "created_today")

# A trigger is a substring, or a tuple of substrings that must all occur.
Trigger = Union[str, tuple[str, ...]]


@dataclass(frozen=True)
class PatternRule:
    """Canonical facet value plus the lower-case triggers that select it."""

    value: str
    triggers: tuple[Trigger, ...]

    def matches(self, text: str) -> bool:
        return any(trigger_matches(t, text) for t in self.triggers)


@dataclass(frozen=True)
class SynonymGroup:
    """Variants used to map a canonical value onto a declared option name."""

    canonical: str
    variants: tuple[str, ...]


@dataclass(frozen=True)
class PatternPack:
    version: str
    languages: tuple[str, ...]
    status: tuple[PatternRule, ...]
    assignee_empty: tuple[Trigger, ...]
    date: tuple[PatternRule, ...]
    priority: tuple[PatternRule, ...]
    tag_keywords: tuple[str, ...]
    status_synonyms: tuple[SynonymGroup, ...]
    priority_synonyms: tuple[SynonymGroup, ...]
    property_hints: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def tag_regex(self) -> re.Pattern[str]:
        keywords = "|".join(self.tag_keywords)
        return re.compile(rf"(?:{keywords})\s+[\"']?([^\"']+)[\"']?", re.IGNORECASE)

    def hints(self, facet_kind: str) -> tuple[str, ...]:
        return self.property_hints.get(facet_kind, ())

    def merged(self, other: PatternPack) -> PatternPack:
        """Return a pack with *other*'s rules appended after this pack's."""
        hints = dict(self.property_hints)
        for kind, extra in other.property_hints.items():
            hints[kind] = _extend(hints.get(kind, ()), extra)
        return replace(
            self,
            version=f"{self.version}+{other.version}",
            languages=_extend(self.languages, other.languages),
            status=_merge_rules(self.status, other.status),
            assignee_empty=_extend(self.assignee_empty, other.assignee_empty),
            date=_merge_rules(self.date, other.date),
            priority=_merge_rules(self.priority, other.priority),
            tag_keywords=_extend(self.tag_keywords, other.tag_keywords),
            status_synonyms=_merge_synonyms(self.status_synonyms, other.status_synonyms),
            priority_synonyms=_merge_synonyms(self.priority_synonyms, other.priority_synonyms),
            property_hints=hints,
        )


def trigger_matches(trigger: Trigger, text: str) -> bool:
    if isinstance(trigger, tuple):
        return all(part in text for part in trigger)
    return trigger in text


def _extend(base: tuple, extra: tuple) -> tuple:
    return base + tuple(item for item in extra if item not in base)


def _merge_rules(base, extra):
    rules = list(base)
    for rule in extra:
        for i, existing in enumerate(rules):
            if existing.value == rule.value:
                rules[i] = PatternRule(existing.value, _extend(existing.triggers, rule.triggers))
                break
        else:
            rules.append(rule)
    return tuple(rules)


def _merge_synonyms(base, extra):
    groups = list(base)
    for group in extra:
        for i, existing in enumerate(groups):
            if existing.canonical == group.canonical:
                groups[i] = SynonymGroup(
                    existing.canonical, _extend(existing.variants, group.variants)
                )
                break
        else:
            groups.append(group)
    return tuple(groups)


# ---------------------------------------------------------------------------
# Built-in English/Spanish pack
# ---------------------------------------------------------------------------

DEFAULT_PATTERN_PACK = PatternPack(
    version="en-es.1",
    languages=("en", "es"),
    status=(
        PatternRule(
            "done", ("done", "completed", "finished", "hecho", "terminado", "completado")
        ),
        PatternRule(
            "in progress",
            ("in progress", "doing", "working", "en marcha", "en progreso", "haciendo"),
        ),
        PatternRule(
            "todo",
            (
                "todo",
                "to do",
                "pending",
                "not started",
                "por hacer",
                "pendiente",
                "por empezar",
            ),
        ),
        PatternRule("blocked", ("blocked", "stuck", "bloqueado")),
        PatternRule("review", ("review", "reviewing", "en revisión", "por revisar")),
        PatternRule("archived", ("archived", "archivado")),
    ),
    assignee_empty=("unassigned", "sin asignar", "no assignee"),
    # "today" is checked before "modified today" / "created today", so those
    # two rules only fire for packs that declare triggers without "today"/"hoy".
    date=(
        PatternRule("before", ("overdue", "vencid", "past due", "atrasad")),
        PatternRule("equals", ("today", "hoy")),
        PatternRule("this_week", ("this week", "esta semana")),
        PatternRule("last_edited_today", ("modified today", ("modificad", "hoy"))),
        PatternRule("created_today", ("created today", ("cread", "hoy"))),
    ),
    priority=(
        PatternRule("high", ("high priority", "urgent", "alta", "urgente", "importante")),
        PatternRule("medium", ("medium priority", "normal", "media")),
        PatternRule("low", ("low priority", "baja")),
    ),
    tag_keywords=("tagged?", "with tags?", "etiqueta"),
    status_synonyms=(
        SynonymGroup("done", ("done", "complete", "finished", "hecho", "terminado")),
        SynonymGroup("in progress", ("progress", "doing", "working", "marcha", "curso")),
        SynonymGroup("todo", ("todo", "start", "pending", "empezar", "pendiente")),
    ),
    priority_synonyms=(
        SynonymGroup("high", ("high", "alta", "urgent", "urgente")),
        SynonymGroup("medium", ("medium", "media", "normal")),
        SynonymGroup("low", ("low", "baja")),
    ),
    property_hints={
        "status": ("status", "estado", "state"),
        "assignee": ("assignee", "asignado", "owner", "responsible", "assigned"),
        "date": ("deadline", "due", "fecha", "date", "vencimiento", "due date"),
        "priority": ("priority", "prioridad", "importance", "importancia"),
        "tags": ("tags", "tag", "etiquetas", "labels", "category", "categoría"),
    },
)


# ---------------------------------------------------------------------------
# JSON language packs
# ---------------------------------------------------------------------------


def _trigger_from_json(raw) -> Trigger:
    if isinstance(raw, list):
        return tuple(str(part).lower() for part in raw)
    return str(raw).lower()


def _rules_from_json(raw, section) -> tuple[PatternRule, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise CliError(f"[ERROR] Pattern pack section '{section}' must be an object.")
    return tuple(
        PatternRule(value, tuple(_trigger_from_json(t) for t in triggers))
        for value, triggers in raw.items()
    )


def _synonyms_from_json(raw, section) -> tuple[SynonymGroup, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise CliError(f"[ERROR] Pattern pack section '{section}' must be an object.")
    return tuple(
        SynonymGroup(canonical, tuple(str(v).lower() for v in variants))
        for canonical, variants in raw.items()
    )


def pattern_pack_from_dict(data: dict) -> PatternPack:
    """Build a (partial) PatternPack from its JSON representation."""
    if not isinstance(data, dict):
        raise CliError("[ERROR] Pattern pack must be a JSON object.")
    date_rules = _rules_from_json(data.get("date"), "date")
    for rule in date_rules:
        if rule.value not in DATE_MODES:
            raise CliError(
                f"[ERROR] Unknown date mode '{rule.value}' in pattern pack. "
                f"Valid: {', '.join(DATE_MODES)}"
            )
    return PatternPack(
        version=str(data.get("version", "custom")),
        languages=tuple(data.get("languages") or ()),
        status=_rules_from_json(data.get("status"), "status"),
        assignee_empty=tuple(_trigger_from_json(t) for t in data.get("assignee_empty") or ()),
        date=date_rules,
        priority=_rules_from_json(data.get("priority"), "priority"),
        tag_keywords=tuple(data.get("tag_keywords") or ()),
        status_synonyms=_synonyms_from_json(data.get("status_synonyms"), "status_synonyms"),
        priority_synonyms=_synonyms_from_json(data.get("priority_synonyms"), "priority_synonyms"),
        property_hints={
            kind: tuple(str(h).lower() for h in hints)
            for kind, hints in (data.get("property_hints") or {}).items()
        },
    )


def load_pattern_pack(path: str, base: PatternPack = DEFAULT_PATTERN_PACK) -> PatternPack:
    """Load a JSON language pack and merge it after *base*."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CliError(f"[ERROR] Cannot read pattern pack '{path}': {e.strerror}") from e
    except json.JSONDecodeError as e:
        raise CliError(
            f"[ERROR] Invalid JSON in pattern pack '{path}': {e.msg} at position {e.pos}"
        ) from None
    return base.merged(pattern_pack_from_dict(data))
