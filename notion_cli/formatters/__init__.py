"""Output formatting package for notion-cli.

Re-exports all public names so consumers can do:
    from notion_cli.formatters import format_pages_table
"""

from notion_cli.formatters._core import (
    mutation_response,
    output,
    pretty_print,
)
from notion_cli.formatters._find import (
    BULK_PREVIEW_LIMIT,
    format_bulk_report,
    format_explain,
    format_find_table,
)
from notion_cli.formatters._pages import (
    format_page_detail,
    format_pages_table,
    format_search_table,
)
from notion_cli.formatters._relations import (
    format_backlinks,
    format_batch_report,
    format_relation_change,
)
from notion_cli.formatters._table import (
    _CONTROL_RE,
    _sanitize_str,
    _table,
    _trunc,
)
from notion_cli.formatters._workspace import (
    format_block_detail,
    format_blocks_table,
    format_comments_table,
    format_context,
    format_database_detail,
    format_schema,
    format_user_detail,
    format_users_table,
    format_workspace,
)

__all__ = [
    "BULK_PREVIEW_LIMIT",
    "_CONTROL_RE",
    "_sanitize_str",
    "_table",
    "_trunc",
    "format_backlinks",
    "format_batch_report",
    "format_block_detail",
    "format_blocks_table",
    "format_bulk_report",
    "format_comments_table",
    "format_context",
    "format_database_detail",
    "format_explain",
    "format_find_table",
    "format_page_detail",
    "format_pages_table",
    "format_relation_change",
    "format_schema",
    "format_search_table",
    "format_user_detail",
    "format_users_table",
    "format_workspace",
    "mutation_response",
    "output",
    "pretty_print",
]
