"""Core output dispatchers."""

import json

from notion_cli import config


def pretty_print(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def output(data, formatter=None, fmt="json"):
    """Output data in requested format."""
    if fmt == "table" and formatter:
        print(formatter(data))
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def mutation_response(action, object_id=None, details=None, data=None, fmt="json"):
    """Print a mutation confirmation (or the request a dry run would send)."""
    if isinstance(data, dict) and data.get("dry_run"):
        print(f"DRY RUN: {action} (no changes made)")
        pretty_print(data.get("request"))
        return

    parts = [action]
    if object_id:
        parts.append(object_id)
    if details:
        parts.append(details)
    if not config.RUNTIME_QUIET:
        print(f"OK: {': '.join(parts)}")
    if fmt == "json" and data:
        pretty_print(data)
