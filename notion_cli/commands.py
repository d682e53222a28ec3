"""
Command implementations for notion-cli.
Each cmd_*() function receives an argparse.Namespace and handles one CLI command.

Business logic lives in client.py (NotionClient). These thin wrappers
handle argparse → keyword args, format selection, and formatter dispatch.
"""

import sys

from notion_cli import blocks, config
from notion_cli._utils import warn
from notion_cli.api import _safe_json_parse
from notion_cli.client import NotionClient
from notion_cli.exceptions import CliError
from notion_cli.formatters import (
    format_backlinks,
    format_batch_report,
    format_block_detail,
    format_blocks_table,
    format_bulk_report,
    format_comments_table,
    format_context,
    format_database_detail,
    format_find_table,
    format_page_detail,
    format_pages_table,
    format_relation_change,
    format_schema,
    format_search_table,
    format_user_detail,
    format_users_table,
    format_workspace,
    mutation_response,
    output,
)


def _get_client():
    return NotionClient()


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def cmd_search(ns):
    result = _get_client().search(
        ns.query,
        object_type=ns.type,
        sort=ns.sort,
        limit=ns.limit,
        cursor=ns.cursor,
    )
    output(result, format_search_table, ns.format)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


def cmd_page(ns):
    output(_get_client().get_page(ns.page_id, content=ns.content), format_page_detail, ns.format)


def cmd_page_create(ns):
    result = _get_client().create_page(
        ns.parent,
        parent_type=ns.parent_type,
        title=ns.title,
        title_prop=ns.title_prop,
        props=ns.prop,
        content=ns.content,
    )
    mutation_response("Page created", result.get("id"), result.get("url"), result, ns.format)


def cmd_page_update(ns):
    archived = True if ns.archive else (False if ns.unarchive else None)
    result = _get_client().update_page(
        ns.page_id, props=ns.prop, archived=archived, database_id=ns.database
    )
    mutation_response("Page updated", ns.page_id, None, result, ns.format)


def cmd_page_archive(ns):
    result = _get_client().archive_page(ns.page_id)
    mutation_response("Page archived", ns.page_id, None, result, ns.format)


def cmd_page_property(ns):
    output(_get_client().get_page_property(ns.page_id, ns.property_id), fmt=ns.format)


# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------


def cmd_db(ns):
    output(_get_client().get_database(ns.database_id), format_database_detail, ns.format)


def cmd_db_query(ns):
    client = _get_client()
    query_filter, warnings = client.build_query_filter(
        ns.database_id,
        filter_json=ns.filter,
        filter_prop=ns.filter_prop,
        filter_type=ns.filter_type,
        filter_value=ns.filter_value,
        filter_prop_type=ns.filter_prop_type,
        where=ns.where,
    )
    for message in warnings:
        warn(message)
    result = client.query_database(
        ns.database_id,
        filter=query_filter,
        sort=ns.sort,
        sort_dir=ns.sort_dir,
        limit=ns.limit,
        cursor=ns.cursor,
    )
    output(result, format_pages_table, ns.format)


def cmd_db_create(ns):
    result = _get_client().create_database(
        ns.parent, ns.title, properties=ns.property, inline=ns.inline
    )
    mutation_response("Database created", result.get("id"), ns.title, result, ns.format)


def cmd_db_update(ns):
    result = _get_client().update_database(
        ns.database_id,
        title=ns.title,
        add_props=ns.add_prop,
        remove_props=ns.remove_prop,
    )
    mutation_response("Database updated", ns.database_id, None, result, ns.format)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def cmd_blocks(ns):
    result = _get_client().list_blocks(ns.block_id, limit=ns.limit, cursor=ns.cursor)
    output(result, format_blocks_table, ns.format)


def cmd_block(ns):
    output(_get_client().get_block(ns.block_id), format_block_detail, ns.format)


def cmd_block_append(ns):
    children = blocks.build_children(
        text=ns.text,
        heading1=ns.heading1,
        heading2=ns.heading2,
        heading3=ns.heading3,
        bullets=ns.bullet,
        numbers=ns.numbered,
        todos=ns.todo,
        code_text=ns.code,
        code_lang=ns.code_lang,
        quote_text=ns.quote,
        callout_text=ns.callout,
        add_divider=ns.divider,
    )
    result = _get_client().append_blocks(ns.block_id, children, after=ns.after)
    mutation_response(
        "Blocks appended", ns.block_id, f"{len(children)} block(s)", result, ns.format
    )


def cmd_block_update(ns):
    result = _get_client().update_block(
        ns.block_id, text=ns.text, archived=True if ns.archive else None
    )
    mutation_response("Block updated", ns.block_id, None, result, ns.format)


def cmd_block_delete(ns):
    result = _get_client().delete_block(ns.block_id)
    mutation_response("Block deleted", ns.block_id, None, result, ns.format)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def cmd_comments(ns):
    result = _get_client().list_comments(ns.block_id, limit=ns.limit, cursor=ns.cursor)
    output(result, format_comments_table, ns.format)


def cmd_comment(ns):
    output(_get_client().get_comment(ns.comment_id), fmt=ns.format)


def cmd_comment_create(ns):
    result = _get_client().create_comment(ns.text, page_id=ns.page, discussion_id=ns.discussion)
    mutation_response("Comment created", result.get("id"), None, result, ns.format)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def cmd_users(ns):
    result = _get_client().list_users(limit=ns.limit, cursor=ns.cursor)
    output(result, format_users_table, ns.format)


def cmd_user(ns):
    output(_get_client().get_user(ns.user_id), format_user_detail, ns.format)


def cmd_me(ns):
    output(_get_client().me(), format_user_detail, ns.format)


# ---------------------------------------------------------------------------
# Smart find
# ---------------------------------------------------------------------------


def cmd_find(ns):
    result = _get_client().find(
        ns.database,
        ns.query,
        limit=ns.limit,
        explain=ns.explain,
        patterns=ns.patterns,
    )
    output(result, format_find_table, ns.format)


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------


def _report_bulk(result, ns):
    for message in result.get("warnings") or []:
        warn(message)
    action = result.get("action", "update")
    for row in result.get("per_page") or []:
        if row.get("ok") is False:
            warn(f"Failed to {action} {row.get('page_id')}: {row.get('error')}")
    output(result, format_bulk_report, ns.format)
    if result.get("matched") and not result.get("executed"):
        if config.RUNTIME_DRY_RUN:
            warn("Dry run: no changes made.")
        else:
            warn("Preview only. Re-run with --yes to apply, or --dry-run to preview.")


def cmd_bulk_update(ns):
    result = _get_client().bulk_update(
        ns.database_id,
        where=ns.where,
        set_clause=ns.set,
        limit=ns.limit,
        execute=ns.yes,
    )
    _report_bulk(result, ns)


def cmd_bulk_archive(ns):
    result = _get_client().bulk_archive(
        ns.database_id,
        where=ns.where,
        limit=ns.limit,
        execute=ns.yes,
    )
    _report_bulk(result, ns)


# ---------------------------------------------------------------------------
# Inspect
# ---------------------------------------------------------------------------


def cmd_inspect_schema(ns):
    output(_get_client().inspect_schema(ns.database_id), format_schema, ns.format)


def cmd_inspect_context(ns):
    result = _get_client().inspect_context(ns.database_id, examples=ns.examples)
    output(result, format_context, ns.format)


def cmd_inspect_workspace(ns):
    result = _get_client().inspect_workspace(limit=ns.limit, cursor=ns.cursor)
    output(result, format_workspace, ns.format)


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


def _report_relation(result, ns):
    for message in result.get("warnings") or []:
        warn(message)
    output(result, format_relation_change, ns.format)


def cmd_relation_link(ns):
    result = _get_client().link_pages(
        ns.source_id, ns.target_id, property_name=ns.property, bidirectional=ns.bidirectional
    )
    _report_relation(result, ns)


def cmd_relation_unlink(ns):
    result = _get_client().unlink_pages(
        ns.source_id, ns.target_id, property_name=ns.property, bidirectional=ns.bidirectional
    )
    _report_relation(result, ns)


def cmd_backlinks(ns):
    result = _get_client().backlinks(ns.page_id, mentions=ns.mentions)
    for message in result.get("warnings") or []:
        warn(message)
    output(result, format_backlinks, ns.format)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def _read_batch_input(ns):
    """Operations JSON from --file, --data or stdin, in that order."""
    if ns.file and ns.data:
        raise CliError("[ERROR] Use only one of --file or --data.")
    if ns.file:
        try:
            with open(ns.file, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise CliError(f"[ERROR] Cannot read batch file '{ns.file}': {e.strerror}") from None
    elif ns.data:
        text = ns.data
    else:
        text = sys.stdin.read()
    if not text.strip():
        raise CliError("[ERROR] No batch operations given. Use --file, --data or stdin.")
    return _safe_json_parse(text, "batch input")


def cmd_batch(ns):
    result = _get_client().batch(_read_batch_input(ns), stop_on_error=ns.stop_on_error)
    output(result, format_batch_report, ns.format)
    if result.get("failed"):
        raise CliError(
            f"[ERROR] {result['failed']} of {result.get('total')} batch operations failed."
        )


# ---------------------------------------------------------------------------
# Raw API
# ---------------------------------------------------------------------------


def cmd_api(ns):
    result = _get_client().raw_request(ns.method, ns.path, data=ns.data, query=ns.query)
    output(result, fmt=ns.format)
