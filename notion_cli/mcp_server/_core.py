"""Core helpers: client caching, _call dispatcher, response contract, ID validation."""

from __future__ import annotations

import re

from notion_cli import CliError, NotionClient, SetupError
from notion_cli._utils import normalize_id, page_title, property_value
from notion_cli.config import CONTRACT_SCHEMA_VERSION, MCP_RESPONSE_MODE

_client: NotionClient | None = None

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def _get_client() -> NotionClient:
    """Return a cached NotionClient, creating one on first use."""
    global _client
    if _client is None:
        _client = NotionClient()
    return _client


def _contract_error(message: str, error_type: str = "error") -> dict:
    """Return a stable MCP error envelope with legacy compatibility fields."""
    return {
        "ok": False,
        "schema_version": CONTRACT_SCHEMA_VERSION,
        "type": error_type,  # legacy
        "error": message,  # legacy
        "error_detail": {
            "type": error_type,
            "message": message,
        },
    }


def _ensure_contract_dict(payload: dict) -> dict:
    """Add stable contract metadata to dict responses."""
    out = dict(payload)
    out.setdefault("schema_version", CONTRACT_SCHEMA_VERSION)
    if out.get("ok") is False:
        error_type = str(out.get("type", "error"))
        error_message = out.get("error", "Unknown error")
        if not isinstance(error_message, str):
            error_message = str(error_message)
            out["error"] = error_message
        out.setdefault("error_detail", {"type": error_type, "message": error_message})
        return out
    out.setdefault("ok", True)
    return out


def _finalize_tool_result(result):
    """Finalize tool response based on configured MCP response mode.

    Modes:
        - legacy (default): dicts gain contract metadata (ok/schema_version).
        - envelope: always return {"ok", "schema_version", "data"} for success.
    """
    if isinstance(result, dict):
        normalized = _ensure_contract_dict(result)
        if normalized.get("ok") is False:
            return normalized
        if MCP_RESPONSE_MODE == "envelope":
            data = dict(normalized)
            data.pop("ok", None)
            data.pop("schema_version", None)
            return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": data}
        return normalized
    if MCP_RESPONSE_MODE == "envelope":
        return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": result}
    return result


_ALLOWED_METHODS = {
    "find",
    "inspect_schema",
    "get_page",
    "build_query_filter",
    "query_database",
    "create_page",
    "update_page",
}


def _validate_id(value: str, field: str = "page_id") -> str:
    """Validate a Notion ID (32 hex chars, dashes optional). Raises CliError if not."""
    normalized = normalize_id(value) if isinstance(value, str) else ""
    if not _ID_RE.match(normalized):
        raise CliError(f"[ERROR] {field} must be a 32-character Notion ID, got: {value!r}")
    return normalized


def _call(method_name: str, **kwargs):
    """Call a NotionClient method, converting exceptions to error dicts."""
    if method_name not in _ALLOWED_METHODS:
        return _contract_error(f"Unknown method: {method_name}", "error")
    try:
        client = _get_client()
        return getattr(client, method_name)(**kwargs)
    except SetupError as e:
        return _contract_error(str(e), "setup")
    except CliError as e:
        return _contract_error(str(e), "error")
    except Exception as e:
        return _contract_error(f"Unexpected error: {e}", "error")


def _is_error(result) -> bool:
    return isinstance(result, dict) and result.get("ok") is False


def _slim_page(page: dict) -> dict:
    """Reduce a page object to id, title, url and rendered property values."""
    props = {}
    for name, prop in (page.get("properties") or {}).items():
        if isinstance(prop, dict):
            props[name] = property_value(prop)
    return {
        "id": page.get("id"),
        "title": page_title(page),
        "url": page.get("url"),
        "last_edited_time": page.get("last_edited_time"),
        "properties": props,
    }
