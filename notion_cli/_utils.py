"""
Shared pure-utility functions for notion-cli.

These helpers have no business logic and no side effects (apart from
``warn``, which writes to stderr). They are used across client.py,
commands.py, and the formatters package.
"""

import sys

from notion_cli import config


def warn(message):
    """Print a warning to stderr unless --quiet is active."""
    if config.RUNTIME_QUIET:
        return
    print(f"[WARN] {message}", file=sys.stderr)


def plain_text(rich_text):
    """Join the plain_text of a rich text array."""
    if not rich_text:
        return ""
    return "".join(part.get("plain_text", "") for part in rich_text if isinstance(part, dict))


def rich_text(content):
    """Build a single-segment rich text array."""
    return [{"type": "text", "text": {"content": content}}]


def page_title(page):
    """Return the title of a page dict (or 'Untitled')."""
    for prop in (page.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return plain_text(prop.get("title")) or "Untitled"
    return "Untitled"


def database_title(db):
    """Return the title of a database dict (or 'Untitled Database')."""
    return plain_text(db.get("title")) or "Untitled Database"


def property_value(prop):
    """Render a page property value as a short string, or None when empty."""
    ptype = prop.get("type")
    data = prop.get(ptype)
    if ptype in ("title", "rich_text"):
        return plain_text(data) or None
    if ptype in ("select", "status"):
        return (data or {}).get("name")
    if ptype == "multi_select":
        return ", ".join(opt.get("name", "") for opt in data or []) or None
    if ptype == "date":
        return (data or {}).get("start")
    if ptype == "number":
        return None if data is None else str(data)
    if ptype == "checkbox":
        return "Yes" if data else "No"
    if ptype in ("url", "email", "phone_number", "created_time", "last_edited_time"):
        return data or None
    if ptype == "people":
        names = [p.get("name") for p in data or [] if p.get("name")]
        return ", ".join(names) or None
    if ptype == "relation":
        return ", ".join(r.get("id", "") for r in data or []) or None
    return None


def normalize_id(value):
    """Strip dashes from a Notion id or extract it from a notion.so URL."""
    raw = (value or "").strip()
    if "notion.so" in raw or "notion.site" in raw:
        raw = raw.split("?")[0].rstrip("/").rsplit("/", 1)[-1]
        raw = raw.rsplit("-", 1)[-1] if len(raw) > 32 else raw
    compact = raw.replace("-", "")
    if len(compact) == 32 and all(c in "0123456789abcdefABCDEF" for c in compact):
        return compact.lower()
    return raw
