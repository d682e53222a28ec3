"""Database schema model: property types, options, and the collection schema.

Built once per command from the ``GET /databases/{id}`` response and never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from notion_cli._utils import plain_text
from notion_cli.exceptions import CliError

# -- Property type tags --

TITLE = "title"
RICH_TEXT = "rich_text"
NUMBER = "number"
CHECKBOX = "checkbox"
SELECT = "select"
MULTI_SELECT = "multi_select"
STATUS = "status"
DATE = "date"
URL = "url"
EMAIL = "email"
PHONE_NUMBER = "phone_number"
PEOPLE = "people"
RELATION = "relation"
FORMULA = "formula"
ROLLUP = "rollup"
FILES = "files"
CREATED_TIME = "created_time"
CREATED_BY = "created_by"
LAST_EDITED_TIME = "last_edited_time"
LAST_EDITED_BY = "last_edited_by"
UNIQUE_ID = "unique_id"

PROPERTY_TYPES: frozenset[str] = frozenset(
    {
        TITLE,
        RICH_TEXT,
        NUMBER,
        CHECKBOX,
        SELECT,
        MULTI_SELECT,
        STATUS,
        DATE,
        URL,
        EMAIL,
        PHONE_NUMBER,
        PEOPLE,
        RELATION,
        FORMULA,
        ROLLUP,
        FILES,
        CREATED_TIME,
        CREATED_BY,
        LAST_EDITED_TIME,
        LAST_EDITED_BY,
        UNIQUE_ID,
    }
)

# "text" is accepted on the command line as an alias for rich_text.
TYPE_ALIASES = {"text": RICH_TEXT, "phone": PHONE_NUMBER}

OPTION_TYPES: frozenset[str] = frozenset({SELECT, MULTI_SELECT, STATUS})
DATE_TYPES: frozenset[str] = frozenset({DATE, CREATED_TIME, LAST_EDITED_TIME})
READ_ONLY_TYPES: frozenset[str] = frozenset(
    {FORMULA, ROLLUP, CREATED_TIME, CREATED_BY, LAST_EDITED_TIME, LAST_EDITED_BY, UNIQUE_ID}
)


def normalize_type(type_tag: str) -> str:
    """Map CLI aliases (``text``) onto API type tags."""
    tag = (type_tag or "").strip().lower()
    return TYPE_ALIASES.get(tag, tag)


@dataclass(frozen=True)
class SelectOption:
    """One declared option of a select, multi_select or status property."""

    name: str
    id: str | None = None
    color: str | None = None
    group: str | None = None


@dataclass(frozen=True)
class PropertySchema:
    """A column: its name, type tag and type-specific configuration."""

    name: str
    type: str
    id: str | None = None
    config: dict[str, Any] = field(default_factory=dict, compare=False)
    options: tuple[SelectOption, ...] = ()

    @property
    def relation_target(self) -> str | None:
        """Target database id of a relation property."""
        if self.type != RELATION:
            return None
        return self.config.get("database_id")

    @property
    def result_type(self) -> str | None:
        """Result-type descriptor of a formula/rollup property, when declared."""
        if self.type == FORMULA:
            return self.config.get("type")
        if self.type == ROLLUP:
            return self.config.get("function")
        return None

    @property
    def option_names(self) -> list[str]:
        return [opt.name for opt in self.options]

    @property
    def option_groups(self) -> dict[str, list[str]]:
        """Status options keyed by group name, in declaration order."""
        groups: dict[str, list[str]] = {}
        for opt in self.options:
            if opt.group:
                groups.setdefault(opt.group, []).append(opt.name)
        return groups

    @property
    def rollup_source(self) -> str | None:
        """``relation.property`` path a rollup aggregates over."""
        if self.type != ROLLUP:
            return None
        relation = self.config.get("relation_property_name") or ""
        target = self.config.get("rollup_property_name") or ""
        if not (relation or target):
            return None
        return f"{relation}.{target}"

    @property
    def read_only(self) -> bool:
        return self.type in READ_ONLY_TYPES

    def describe(self) -> dict[str, Any]:
        """JSON view of the column; keys without a value are left out."""
        entry: dict[str, Any] = {"name": self.name, "type": self.type}
        if self.id:
            entry["id"] = self.id
        if self.options:
            entry["options"] = self.option_names
            if self.option_groups:
                entry["groups"] = self.option_groups
        if self.relation_target:
            entry["relation_target"] = self.relation_target
        if self.rollup_source:
            entry["rollup_of"] = self.rollup_source
        if self.result_type:
            entry["result_type"] = self.result_type
        if self.read_only:
            entry["read_only"] = True
        return entry

    @classmethod
    def from_api(cls, name: str, raw: dict) -> PropertySchema:
        ptype = raw.get("type", "")
        config = raw.get(ptype) or {}
        if not isinstance(config, dict):
            config = {}
        return cls(
            name=name,
            type=ptype,
            id=raw.get("id"),
            config=config,
            options=_parse_options(ptype, config),
        )


def _parse_options(ptype: str, config: dict) -> tuple[SelectOption, ...]:
    if ptype not in OPTION_TYPES:
        return ()
    group_by_option: dict[str, str] = {}
    for group in config.get("groups") or []:
        for option_id in group.get("option_ids") or []:
            group_by_option[option_id] = group.get("name")
    options = []
    for opt in config.get("options") or []:
        if not isinstance(opt, dict) or not opt.get("name"):
            continue
        options.append(
            SelectOption(
                name=opt["name"],
                id=opt.get("id"),
                color=opt.get("color"),
                group=group_by_option.get(opt.get("id")),
            )
        )
    return tuple(options)


@dataclass(frozen=True)
class CollectionSchema:
    """Ordered mapping of property name to PropertySchema.

    Exactly one property has type ``title``.
    """

    properties: tuple[PropertySchema, ...]
    database_id: str | None = None
    title: str = ""

    def __post_init__(self):
        titles = [p.name for p in self.properties if p.type == TITLE]
        if len(titles) != 1:
            raise CliError(
                "[ERROR] Database schema must declare exactly one title property "
                f"(found {len(titles)})."
            )

    @classmethod
    def from_properties(
        cls, properties: dict, *, database_id: str | None = None, title: str = ""
    ) -> CollectionSchema:
        """Build from the ``properties`` mapping of a database object."""
        return cls(
            properties=tuple(
                PropertySchema.from_api(name, raw or {}) for name, raw in properties.items()
            ),
            database_id=database_id,
            title=title,
        )

    @classmethod
    def from_api(cls, database: dict) -> CollectionSchema:
        """Build from a full ``GET /databases/{id}`` response."""
        properties = database.get("properties")
        if not isinstance(properties, dict):
            raise CliError("[ERROR] Database response has no 'properties' object.")
        return cls.from_properties(
            properties,
            database_id=database.get("id"),
            title=plain_text(database.get("title")),
        )

    def __contains__(self, name: object) -> bool:
        return any(p.name == name for p in self.properties)

    def __iter__(self):
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)

    def get(self, name: str) -> PropertySchema | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def names(self) -> list[str]:
        return [p.name for p in self.properties]

    @property
    def title_property(self) -> PropertySchema:
        return next(p for p in self.properties if p.type == TITLE)

    def of_types(self, types) -> list[PropertySchema]:
        return [p for p in self.properties if p.type in types]

    def describe(self) -> dict[str, Any]:
        return {
            "database_id": self.database_id,
            "title": self.title,
            "title_property": self.title_property.name,
            "properties": [p.describe() for p in self.properties],
        }
