"""Security: injection detection, output tagging, input validation."""

from __future__ import annotations

import re

from notion_cli import CliError

_INJECTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"^(system|assistant|user)\s*:", re.IGNORECASE | re.MULTILINE),
        "role label",
    ),
    (
        re.compile(
            r"<\s*/?\s*(system|instruction|admin|prompt|tool_call|function_call)",
            re.IGNORECASE,
        ),
        "XML-like directive tag",
    ),
    (
        re.compile(
            r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)",
            re.IGNORECASE,
        ),
        "override directive",
    ),
    (
        re.compile(
            r"(execute|call|invoke|run)\s+the\s+(tool|function|command)",
            re.IGNORECASE,
        ),
        "tool invocation directive",
    ),
]


def _check_injection(text: str) -> list[str]:
    """Check text for common prompt injection patterns.

    Returns list of matched pattern descriptions (empty if clean).
    Short strings (< 10 chars) are skipped.
    """
    if len(text) < 10:
        return []
    return [desc for pattern, desc in _INJECTION_PATTERNS if pattern.search(text)]


def _tag_user_text(text: str | None) -> str | None:
    """Wrap user-authored text in [USER_DATA] boundary markers."""
    if text is None:
        return None
    return f"[USER_DATA]{text}[/USER_DATA]"


def _sanitize_page(page: dict) -> dict:
    """Tag the title and text property values of a slim page row."""
    out = dict(page)
    warnings: list[str] = []
    if isinstance(out.get("title"), str):
        for desc in _check_injection(out["title"]):
            warnings.append(f"title: {desc}")
        out["title"] = _tag_user_text(out["title"])
    props = out.get("properties")
    if isinstance(props, dict):
        tagged = {}
        for name, value in props.items():
            if isinstance(value, str):
                for desc in _check_injection(value):
                    warnings.append(f"properties.{name}: {desc}")
                value = _tag_user_text(value)
            tagged[name] = value
        out["properties"] = tagged
    if warnings:
        out["_safety_warnings"] = warnings
    return out


_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_INPUT_LIMITS = {
    "title": 2000,
    "query": 500,
    "where": 2000,
    "content": 2000,
    "prop": 2000,
}


def _validate_input(text: str, field: str) -> str:
    """Strip control characters and enforce length limits.

    Raises CliError if text is not a string or exceeds the field limit.
    """
    if not isinstance(text, str):
        raise CliError(f"[ERROR] {field} must be a string")
    cleaned = _CONTROL_RE.sub("", text)
    limit = _INPUT_LIMITS.get(field, 2000)
    if len(cleaned) > limit:
        raise CliError(f"[ERROR] {field} exceeds maximum length of {limit} characters")
    return cleaned
