"""Property write encoder: ``key=value`` strings → typed write payload."""

from __future__ import annotations

import json
import re

from notion_cli import schema as s
from notion_cli._utils import rich_text
from notion_cli.compiler._inference import DEFAULT_RESOLVER, TypeResolver
from notion_cli.schema import CollectionSchema

DEFAULT_TITLE_PROPERTY = "Name"

# Split "A=1,B=x,y" only at commas that start a new "key=" assignment.
_SET_SPLIT_RE = re.compile(r",\s*(?=[^,=]+=)")


def split_assignment(pair: str) -> tuple[str, str] | None:
    """Split on the first '='. Returns None when there is no '='."""
    key, sep, value = pair.partition("=")
    if not sep:
        return None
    return key.strip(), value


def _json_value(value: str):
    """Parse a JSON-looking value, falling back to a literal text wrapper."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return {"rich_text": rich_text(value)}


def encode_property(
    key: str,
    value: str,
    schema: CollectionSchema | None = None,
    *,
    resolver: TypeResolver = DEFAULT_RESOLVER,
) -> dict:
    """Encode one property value.

    JSON-looking values are used verbatim. With a schema, a known writable
    property is encoded by its declared type; anything else is inferred from
    the value's shape.
    """
    if value.startswith(("[", "{")):
        return _json_value(value)
    prop = schema.get(key) if schema is not None else None
    if prop is not None and prop.type not in s.READ_ONLY_TYPES:
        typed = resolver.write_value_for(prop.type, value)
        if typed is not None:
            return typed
    return resolver.write_value(value)


def build_write_payload(
    pairs,
    schema: CollectionSchema | None = None,
    *,
    resolver: TypeResolver = DEFAULT_RESOLVER,
) -> dict:
    """Build a write payload from ``key=value`` strings.

    One output key per input pair (last duplicate wins). Entries without '='
    are ignored. Unknown property names pass through untouched.
    """
    payload: dict = {}
    for pair in pairs or []:
        split = split_assignment(pair)
        if split is None:
            continue
        key, value = split
        payload[key] = encode_property(key, value, schema, resolver=resolver)
    return payload


def split_set_clause(set_clause: str) -> list[str]:
    """Split a bulk ``--set "A=1,Tags=x,y"`` clause into assignments."""
    return [part.strip() for part in _SET_SPLIT_RE.split(set_clause or "") if part.strip()]


def title_property_name(schema: CollectionSchema | None, explicit: str | None = None) -> str:
    if explicit:
        return explicit
    if schema is not None:
        return schema.title_property.name
    return DEFAULT_TITLE_PROPERTY


def title_payload(
    title: str, schema: CollectionSchema | None = None, title_prop: str | None = None
) -> dict:
    """Payload entry that sets the page title."""
    return {title_property_name(schema, title_prop): {"title": rich_text(title)}}
