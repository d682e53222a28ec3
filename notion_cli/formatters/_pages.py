"""Formatters for search results, pages and database query results."""

from notion_cli._utils import database_title, page_title, property_value
from notion_cli.blocks import block_text
from notion_cli.formatters._table import _more_footer, _table, _trunc


def _object_title(obj):
    if obj.get("object") == "database":
        return database_title(obj)
    return page_title(obj)


def format_search_table(result):
    """Format search results (pages and databases) as a table."""
    items = result.get("results", [])
    if not items:
        return "No results found."
    cols = [("Type", 9), ("Title", 40), ("Last edited", 20), ("ID", 0)]
    rows = []
    for obj in items:
        rows.append(
            (
                obj.get("object", "?"),
                _trunc(_object_title(obj), 40),
                (obj.get("last_edited_time") or "")[:16].replace("T", " "),
                obj.get("id", ""),
            )
        )
    return _table(cols, rows, _more_footer(len(items), "results", result))


def format_pages_table(result):
    """Format database query results as a table."""
    pages = result.get("results", [])
    if not pages:
        return "No matching entries found."
    cols = [("Title", 44), ("Last edited", 20), ("ID", 0)]
    rows = [
        (
            _trunc(page_title(page), 44),
            (page.get("last_edited_time") or "")[:16].replace("T", " "),
            page.get("id", ""),
        )
        for page in pages
    ]
    return _table(cols, rows, _more_footer(len(pages), "pages", result))


def format_page_detail(result):
    """Format a page (optionally with its blocks) as readable text."""
    page = result.get("page", result)
    lines = [f"Page: {page_title(page)}", f"ID:   {page.get('id', '')}"]
    if page.get("url"):
        lines.append(f"URL:  {page['url']}")
    if page.get("archived"):
        lines.append("Archived: yes")
    props = page.get("properties") or {}
    if props:
        lines.append("")
        lines.append("Properties:")
        width = min(max(len(name) for name in props), 24)
        for name, prop in props.items():
            value = property_value(prop) if isinstance(prop, dict) else None
            lines.append(f"  {name:<{width}}  {value if value is not None else '-'}")
    block_list = (result.get("blocks") or {}).get("results") if "page" in result else None
    if block_list is not None:
        lines.append("")
        lines.append("Content:")
        if not block_list:
            lines.append("  (empty)")
        for block in block_list:
            text = block_text(block)
            lines.append(f"  [{block.get('type', '?')}] {text}".rstrip())
    return "\n".join(lines)
