"""Formatters for smart find, --explain and bulk previews."""

import json

from notion_cli._utils import page_title

BULK_PREVIEW_LIMIT = 10


def _facet_label(facet):
    kind = facet.get("kind")
    if kind == "date":
        value = facet.get("value")
        return f"date {facet.get('mode')}" + (f" {value}" if value else "")
    if kind == "tags":
        return "tags " + ", ".join(facet.get("values") or [])
    if kind == "assignee_empty":
        return "assignee empty"
    return f"{kind} {facet.get('value')}"


def format_explain(result):
    """Show extracted facets, how each resolved, and the composed filter."""
    lines = [f"Query: {result.get('query', '')}", ""]
    facets = result.get("facets") or []
    if not facets:
        lines.append("No facets recognized.")
    else:
        lines.append("Facets:")
        for facet in facets:
            if facet.get("resolved"):
                target = facet.get("property") or "(timestamp)"
                lines.append(f"  + {_facet_label(facet)} -> {target}")
            else:
                reason = (
                    "no matching option" if facet.get("property") else "no matching property"
                )
                lines.append(f"  - {_facet_label(facet)} (dropped: {reason})")
    lines.append("")
    lines.append("Filter:")
    lines.append(json.dumps(result.get("filter"), indent=2, ensure_ascii=False))
    if result.get("command"):
        lines.append("")
        lines.append("To execute manually:")
        lines.append(f"  {result['command']}")
    return "\n".join(lines)


def format_find_table(result):
    """Format smart find results as a numbered list."""
    if result.get("explain"):
        return format_explain(result)
    pages = result.get("results") or []
    lines = [f'Found {len(pages)} results for: "{result.get("query", "")}"', ""]
    if not pages:
        lines.append("No matching entries found.")
        return "\n".join(lines)
    for i, page in enumerate(pages, 1):
        lines.append(f"{i}. {page_title(page)}")
        lines.append(f"   ID:  {page.get('id', '')}")
        if page.get("url"):
            lines.append(f"   URL: {page['url']}")
    if result.get("has_more"):
        lines.append("")
        lines.append("More results available. Use --limit to fetch more.")
    return "\n".join(lines)


def format_bulk_report(result):
    """Format a bulk update/archive preview or execution report."""
    action = result.get("action", "update")
    matched = result.get("matched", 0)
    if not matched:
        return "No entries match the condition."
    more = " (more available)" if result.get("has_more") else ""
    lines = [f"Found {matched} matching entries{more}"]
    if not result.get("executed"):
        verb = "archive" if action == "archive" else "update"
        lines.append("")
        lines.append(f"Entries to {verb}:")
        rows = result.get("per_page") or []
        for row in rows[:BULK_PREVIEW_LIMIT]:
            lines.append(f"  - {row.get('title')} ({(row.get('page_id') or '')[:8]}...)")
        if len(rows) > BULK_PREVIEW_LIMIT:
            lines.append(f"  ... and {len(rows) - BULK_PREVIEW_LIMIT} more")
        if result.get("changes"):
            lines.append("")
            lines.append("Changes to apply:")
            for key, value in result["changes"].items():
                lines.append(f"  {key} -> {json.dumps(value, ensure_ascii=False)}")
        return "\n".join(lines)
    done = result.get("updated", 0)
    failed = result.get("failed", 0)
    past = "Archived" if action == "archive" else "Updated"
    summary = f"{past} {done} entries"
    if failed:
        summary += f", {failed} failed"
    lines.append(summary)
    for row in result.get("per_page") or []:
        if row.get("ok") is False:
            lines.append(f"  ! {row.get('page_id')}: {row.get('error')}")
    return "\n".join(lines)
