"""
Typed models for command payloads.
"""

from dataclasses import dataclass

from notion_cli import schema as s
from notion_cli.exceptions import CliError


@dataclass(frozen=True)
class ObjectPayload:
    """Typed wrapper for raw JSON object payloads."""

    data: dict

    @classmethod
    def from_value(cls, value, context):
        if isinstance(value, dict):
            return cls(data=value)
        raise CliError(
            f"[ERROR] Invalid JSON in {context}: expected object, got {type(value).__name__}."
        )


@dataclass(frozen=True)
class PropertyDefinition:
    """A ``name:type`` column definition for db-create / db-update."""

    name: str
    type: str

    @classmethod
    def parse(cls, value):
        name, sep, type_tag = (value or "").rpartition(":")
        name = name.strip()
        ptype = s.normalize_type(type_tag)
        if not sep or not name or not ptype:
            raise CliError(f"[ERROR] Invalid property definition '{value}'. Use name:type.")
        if ptype not in s.PROPERTY_TYPES:
            raise CliError(
                f"[ERROR] Unknown property type '{type_tag}' in '{value}'. "
                f"Valid: {', '.join(sorted(s.PROPERTY_TYPES))}"
            )
        return cls(name=name, type=ptype)

    def to_api(self):
        return {self.type: {}}


@dataclass(frozen=True)
class QueryOptions:
    """Validated sort/paging options for a database query."""

    sort: str | None = None
    sort_dir: str = "desc"
    limit: int | None = None
    cursor: str | None = None

    def __post_init__(self):
        if self.sort_dir not in ("asc", "desc"):
            raise CliError(f"[ERROR] Invalid sort direction '{self.sort_dir}'. Use asc or desc.")
        if self.limit is not None and not 1 <= self.limit <= 100:
            raise CliError("[ERROR] --limit must be between 1 and 100.")

    def to_body(self):
        body = {}
        if self.sort:
            body["sorts"] = [
                {
                    "property": self.sort,
                    "direction": "ascending" if self.sort_dir == "asc" else "descending",
                }
            ]
        if self.limit:
            body["page_size"] = self.limit
        if self.cursor:
            body["start_cursor"] = self.cursor
        return body
