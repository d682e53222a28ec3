"""Write tools: create and update pages."""

from __future__ import annotations

from notion_cli import CliError
from notion_cli.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_id,
)
from notion_cli.mcp_server._security import _validate_input


def _validate_props(props):
    return [_validate_input(p, "prop") for p in props or []]


def create_page(
    database_id: str,
    title: str,
    props: list[str] | None = None,
    content: str | None = None,
) -> dict:
    """Create a page in a database.

    Args:
        database_id: Parent database ID.
        title: Written to the database's title property.
        props: Assignments like ["Status=Todo", "Tags=bug,ui", "Due=2024-05-01"].
            Values are typed by the database schema.
        content: Optional first paragraph.
    """
    try:
        db_id = _validate_id(database_id, "database_id")
        title = _validate_input(title, "title")
        props = _validate_props(props)
        if content is not None:
            content = _validate_input(content, "content")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "create_page",
            parent_id=db_id,
            parent_type="database",
            title=title,
            props=props or None,
            content=content,
        )
    )


def update_page(
    page_id: str,
    props: list[str] | None = None,
    archived: bool | None = None,
    database_id: str | None = None,
) -> dict:
    """Update page properties and/or archive state.

    Args:
        page_id: Page ID.
        props: Assignments like ["Status=Done", "Points=3"].
        archived: True to archive, False to restore.
        database_id: Parent database, so values are typed by its schema.
    """
    try:
        pid = _validate_id(page_id, "page_id")
        db_id = _validate_id(database_id, "database_id") if database_id else None
        props = _validate_props(props)
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_page",
            page_id=pid,
            props=props or None,
            archived=archived,
            database_id=db_id,
        )
    )


def register(mcp):
    """Register all write tools with the FastMCP instance."""
    mcp.tool()(create_page)
    mcp.tool()(update_page)
