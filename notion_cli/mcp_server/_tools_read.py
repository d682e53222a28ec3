"""Read tools: smart find, explain, database queries, schema, pages."""

from __future__ import annotations

from notion_cli import CliError
from notion_cli.blocks import block_text
from notion_cli.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _is_error,
    _slim_page,
    _validate_id,
)
from notion_cli.mcp_server._security import _sanitize_page, _tag_user_text, _validate_input


def find(database_id: str, query: str, limit: int = 20) -> dict:
    """Query a database with a free-text description.

    The text is reduced to facets (status, unassigned, date, priority, tags),
    each resolved against the database schema and combined with AND. Facets
    that match nothing in the schema are dropped; see 'facets[].resolved'.

    Args:
        database_id: Database ID (32 hex chars, dashes optional).
        query: e.g. "done tasks edited today", "urgent unassigned bugs".
        limit: Max pages to return (1-100, default 20).
    """
    try:
        db_id = _validate_id(database_id, "database_id")
        query = _validate_input(query, "query")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    result = _call("find", database_id=db_id, query=query, limit=limit)
    if _is_error(result):
        return _finalize_tool_result(result)
    out = dict(result)
    out["results"] = [_sanitize_page(_slim_page(p)) for p in result.get("results", [])]
    return _finalize_tool_result(out)


def explain_find(database_id: str, query: str) -> dict:
    """Show how a free-text query compiles to a filter, without running it.

    Returns the per-facet resolution, the compiled filter and an equivalent
    'notion-cli db-query' command.
    """
    try:
        db_id = _validate_id(database_id, "database_id")
        query = _validate_input(query, "query")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("find", database_id=db_id, query=query, explain=True))


def query_database(
    database_id: str,
    where: str | None = None,
    filter: dict | None = None,
    sort: str | None = None,
    sort_dir: str = "desc",
    limit: int = 20,
    cursor: str | None = None,
) -> dict:
    """Query a database by condition string or raw filter object.

    Args:
        database_id: Database ID.
        where: Conditions like "Status=Done, Priority>=2" (AND-ed). Unknown
            properties are skipped and reported in 'warnings'.
        filter: Raw Notion filter object. Use only one of where/filter.
        sort: Property name to sort by.
        sort_dir: 'asc' or 'desc' (default).
        limit: Page size (1-100, default 20).
        cursor: 'next_cursor' from a previous call.
    """
    try:
        db_id = _validate_id(database_id, "database_id")
        if where is not None:
            where = _validate_input(where, "where")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    compiled = _call("build_query_filter", database_id=db_id, filter_json=filter, where=where)
    if _is_error(compiled):
        return _finalize_tool_result(compiled)
    query_filter, warnings = compiled
    result = _call(
        "query_database",
        database_id=db_id,
        filter=query_filter,
        sort=sort,
        sort_dir=sort_dir,
        limit=limit,
        cursor=cursor,
    )
    if _is_error(result):
        return _finalize_tool_result(result)
    return _finalize_tool_result(
        {
            "filter": query_filter,
            "warnings": warnings,
            "results": [_sanitize_page(_slim_page(p)) for p in result.get("results", [])],
            "has_more": bool(result.get("has_more")),
            "next_cursor": result.get("next_cursor"),
        }
    )


def get_database_schema(database_id: str) -> dict:
    """Property names, types, options and valid filter operators of a database.

    Status options are also listed by group; relation properties name their
    target database and rollups the relation.property they aggregate.
    Call this before building a where-clause or property assignments.
    """
    try:
        db_id = _validate_id(database_id, "database_id")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    schema = _call("inspect_schema", database_id=db_id)
    if _is_error(schema):
        return _finalize_tool_result(schema)
    out = dict(schema)
    out["database_id"] = db_id
    out["title"] = _tag_user_text(schema.get("title"))
    out["description"] = _tag_user_text(schema.get("description") or None)
    return _finalize_tool_result(out)


def get_page(page_id: str, include_content: bool = False) -> dict:
    """Get one page with rendered property values.

    Args:
        page_id: Page ID.
        include_content: Also return the text of the first page of blocks.
    """
    try:
        pid = _validate_id(page_id, "page_id")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    result = _call("get_page", page_id=pid, content=include_content)
    if _is_error(result):
        return _finalize_tool_result(result)
    if not include_content:
        return _finalize_tool_result(_sanitize_page(_slim_page(result)))
    out = _sanitize_page(_slim_page(result.get("page", {})))
    out["content"] = [
        {"type": b.get("type"), "text": _tag_user_text(block_text(b))}
        for b in (result.get("blocks") or {}).get("results", [])
    ]
    return _finalize_tool_result(out)


def register(mcp):
    """Register all read tools with the FastMCP instance."""
    mcp.tool()(find)
    mcp.tool()(explain_find)
    mcp.tool()(query_database)
    mcp.tool()(get_database_schema)
    mcp.tool()(get_page)
