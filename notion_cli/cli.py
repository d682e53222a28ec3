"""
notion-cli: command-line client for Notion pages, databases and blocks
"""

import argparse
import json
import sys

from notion_cli import config
from notion_cli.api import _check_token
from notion_cli.commands import (
    cmd_api,
    cmd_backlinks,
    cmd_batch,
    cmd_block,
    cmd_block_append,
    cmd_block_delete,
    cmd_block_update,
    cmd_blocks,
    cmd_bulk_archive,
    cmd_bulk_update,
    cmd_comment,
    cmd_comment_create,
    cmd_comments,
    cmd_db,
    cmd_db_create,
    cmd_db_query,
    cmd_db_update,
    cmd_find,
    cmd_inspect_context,
    cmd_inspect_workspace,
    cmd_inspect_schema,
    cmd_me,
    cmd_page,
    cmd_page_archive,
    cmd_page_create,
    cmd_page_property,
    cmd_page_update,
    cmd_relation_link,
    cmd_relation_unlink,
    cmd_search,
    cmd_user,
    cmd_users,
)
from notion_cli.exceptions import CliError

HELP_TEXT = """\
Usage: notion-cli <command> [args...]

Global flags:
  --format table          Output as readable text instead of JSON (default: json)
  --token <secret>        Integration token (overrides NOTION_TOKEN)
  --dry-run               Preview mutations without executing them
  --quiet, -q             Suppress confirmations and warnings
  --verbose, -v           Enable HTTP request logging
  --version               Show version number

Commands:
  search [query]          - Search pages and databases shared with the integration
    --type <page|database>  Only return one object type
    --sort <asc|desc>       Sort by last edited time
    --limit <n>             Page size (1-100)
    --cursor <cursor>       Continue from a previous response
  page <id>               - Get a page
    --content               Also fetch its blocks
  page-create             - Create a page
    --parent <id>           Parent database or page ID (required)
    --parent-type <type>    database (default) or page
    -t, --title <text>      Page title (title property auto-detected)
    --title-prop <name>     Title property name (skip detection)
    -p, --prop key=value    Set a property (repeatable). Values are typed by the
                            database schema, else by shape: true/false, numbers,
                            YYYY-MM-DD dates, URLs, emails, a,b lists, JSON
    -c, --content <text>    First paragraph
  page-update <id>        - Update page properties
    -p, --prop key=value    Set a property (repeatable)
    -d, --database <id>     Type values by this database's schema
    --archive | --unarchive Archive or restore the page
  page-archive <id>       - Archive a page
  page-property <page_id> <property_id>
                          - Get one page property (for long rollups/relations)
  db <id>                 - Get a database and its property schema
  db-query <id>           - Query a database
    -f, --filter <json>     Raw filter object
    --filter-prop <name>    Property for a single condition
    --filter-type <op>      Operator: equals, contains, before, is_empty, ...
    --filter-value <value>  Operand (typed by --filter-prop-type, the schema,
                            or its shape)
    --filter-prop-type <t>  Property type: status, select, multi_select, text,
                            number, checkbox, date, ...
    -w, --where <clause>    Conditions such as "Status=Done,Priority!=Low,Points>=3"
    -s, --sort <property>   Sort by property
    --sort-dir <asc|desc>   Sort direction (default: desc)
    --limit <n>             Page size (1-100)
    --cursor <cursor>       Continue from a previous response
  db-create               - Create a database under a page
    --parent <page_id>      Parent page (required)
    -t, --title <text>      Database title (required)
    -p, --property name:type Add a column (repeatable)
    --inline                Create as inline database
  db-update <id>          - Update a database
    -t, --title <text>      New title
    --add-prop name:type    Add a column (repeatable)
    --remove-prop <name>    Remove a column (repeatable)
  blocks <id>             - List child blocks of a page or block
  block <id>              - Get a block
  block-append <id>       - Append content to a page or block
    --text, --heading1, --heading2, --heading3, --quote, --callout <text>
    --bullet, --numbered, --todo <text>   (repeatable)
    --code <text> [--code-lang <lang>]
    --divider
    --after <block_id>      Insert after this block
  block-update <id>       - Replace a block's text
    --text <text>
    --archive               Archive the block
  block-delete <id>       - Delete (archive) a block
  comments <block_id>     - List comments on a page or block
  comment <comment_id>    - Get a comment
  comment-create          - Add a comment
    --page <id> | --discussion <id>
    --text <text>           Comment text (required)
  users                   - List workspace users
  user <id>               - Get a user
  me                      - Show the integration's bot user
  find <query>            - Smart query, e.g. "overdue tasks unassigned"
    -d, --database <id>     Database to search (required)
    -l, --limit <n>         Max results (default: 20)
    --explain               Show recognized facets and the filter, don't query
    --patterns <file>       Extra JSON pattern pack (also NOTION_CLI_PATTERNS)
  bulk-update <db_id>     - Update every page matching a where-clause
    -w, --where <clause>    e.g. "Status=Todo" (required)
    --set "K=V,..."         Properties to set (required)
    --limit <n>             Max pages (default: 100)
    --yes                   Apply changes (otherwise preview only)
  bulk-archive <db_id>    - Archive every page matching a where-clause
  bulk-delete <db_id>     - Alias of bulk-archive (Notion has no hard delete)
    -w, --where <clause>    (required)
    --limit <n>             Max pages (default: 100)
    --yes                   Apply changes (otherwise preview only)
  inspect-schema <db_id>  - Property types, options by status group, relation
                            targets, rollups and valid filter operators
  inspect-context <db_id> - Schema, example entries and starter commands
                            (Markdown with --format table)
    --examples <n>          Example entries to include (default: 3)
  inspect-workspace       - Databases shared with the integration and their
                            properties
    --limit <n>             Databases per page (default: 20)
    --cursor <cursor>       Continue from a previous page
  relation-link <source_id> <target_id>
                          - Add target to a relation property of source
  relation-unlink <source_id> <target_id>
                          - Remove target from a relation property of source
    -p, --property <name>   Relation property (required)
    --bidirectional         Also update the same property on the target
  backlinks <page_id>     - Pages whose relation properties point at a page
    --mentions              Also list pages found by a title search
  batch                   - Run a JSON array of operations in order
    -f, --file <path>       Read operations from a file (default: stdin)
    --data <json>           Operations as a JSON string
    --stop-on-error         Stop at the first failed operation
  api <METHOD> <path>     - Raw API call, e.g. api GET users/me
    --data <json>           JSON body
    --query k=v,...         Query parameters
  version                 - Show version number
"""


# ---------------------------------------------------------------------------
# Global flag extraction (before argparse, so --format works after subcommand)
# ---------------------------------------------------------------------------


def _extract_global_flags(argv):
    """Extract global flags from argv regardless of position.

    Returns (format_str, token, dry_run, quiet, verbose, remaining_argv).
    Handles --version directly.
    """
    fmt = "json"
    token = None
    dry_run = False
    quiet = False
    verbose = False
    remaining = []
    i = 0
    while i < len(argv):
        if argv[i] == "--version":
            print(f"notion-cli {config.VERSION}")
            sys.exit(0)
        elif argv[i] == "--dry-run":
            dry_run = True
            i += 1
            continue
        elif argv[i] in ("--quiet", "-q"):
            quiet = True
            i += 1
            continue
        elif argv[i] in ("--verbose", "-v"):
            verbose = True
            i += 1
            continue
        elif argv[i] == "--format" and i + 1 < len(argv):
            fmt = argv[i + 1]
            if fmt not in config.VALID_FORMATS:
                raise CliError(
                    f"[ERROR] Invalid format '{fmt}'. Use: {', '.join(config.VALID_FORMATS)}"
                )
            i += 2
            continue
        elif argv[i] == "--token" and i + 1 < len(argv):
            token = argv[i + 1]
            i += 2
            continue
        else:
            remaining.append(argv[i])
        i += 1
    if quiet and verbose:
        raise CliError("[ERROR] --quiet and --verbose are mutually exclusive.")
    return fmt, token, dry_run, quiet, verbose, remaining


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _SubcommandParser(argparse.ArgumentParser):
    """Subparser that raises CliError instead of printing full help text."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


def _positive_int(value):
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a positive integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return parsed


def _page_size(value):
    parsed = _positive_int(value)
    if parsed > 100:
        raise argparse.ArgumentTypeError("must be between 1 and 100")
    return parsed


def _add_paging(p, default_limit=None):
    p.add_argument("--limit", "-l", type=_page_size, default=default_limit)
    p.add_argument("--cursor")


def build_parser():
    parser = _SubcommandParser(
        prog="notion-cli",
        description="Command-line client for Notion pages, databases and blocks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    sub = parser.add_subparsers(dest="command", parser_class=_SubcommandParser)

    # --- search ---
    p = sub.add_parser("search")
    p.add_argument("query", nargs="?")
    p.add_argument("--type", choices=sorted(config.VALID_SEARCH_TYPES))
    p.add_argument("--sort", choices=sorted(config.VALID_SORT_DIRECTIONS))
    _add_paging(p)
    p.set_defaults(func=cmd_search)

    # --- page ---
    p = sub.add_parser("page")
    p.add_argument("page_id")
    p.add_argument("--content", action="store_true")
    p.set_defaults(func=cmd_page)

    # --- page-create ---
    p = sub.add_parser("page-create")
    p.add_argument("--parent", required=True)
    p.add_argument(
        "--parent-type",
        dest="parent_type",
        choices=sorted(config.VALID_PARENT_TYPES),
        default="database",
    )
    p.add_argument("--title", "-t")
    p.add_argument("--title-prop", dest="title_prop")
    p.add_argument("--prop", "-p", action="append", metavar="KEY=VALUE")
    p.add_argument("--content", "-c")
    p.set_defaults(func=cmd_page_create)

    # --- page-update ---
    p = sub.add_parser("page-update")
    p.add_argument("page_id")
    p.add_argument("--prop", "-p", action="append", metavar="KEY=VALUE")
    p.add_argument("--database", "-d")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--archive", action="store_true")
    group.add_argument("--unarchive", action="store_true")
    p.set_defaults(func=cmd_page_update)

    # --- page-archive ---
    p = sub.add_parser("page-archive")
    p.add_argument("page_id")
    p.set_defaults(func=cmd_page_archive)

    # --- page-property ---
    p = sub.add_parser("page-property")
    p.add_argument("page_id")
    p.add_argument("property_id")
    p.set_defaults(func=cmd_page_property)

    # --- db ---
    p = sub.add_parser("db")
    p.add_argument("database_id")
    p.set_defaults(func=cmd_db)

    # --- db-query ---
    p = sub.add_parser("db-query")
    p.add_argument("database_id")
    p.add_argument("--filter", "-f")
    p.add_argument("--filter-prop", dest="filter_prop")
    p.add_argument("--filter-type", dest="filter_type")
    p.add_argument("--filter-value", dest="filter_value")
    p.add_argument("--filter-prop-type", dest="filter_prop_type")
    p.add_argument("--where", "-w")
    p.add_argument("--sort", "-s")
    p.add_argument(
        "--sort-dir", dest="sort_dir", choices=sorted(config.VALID_SORT_DIRECTIONS), default="desc"
    )
    _add_paging(p)
    p.set_defaults(func=cmd_db_query)

    # --- db-create ---
    p = sub.add_parser("db-create")
    p.add_argument("--parent", required=True)
    p.add_argument("--title", "-t", required=True)
    p.add_argument("--property", "-p", action="append", metavar="NAME:TYPE")
    p.add_argument("--inline", action="store_true")
    p.set_defaults(func=cmd_db_create)

    # --- db-update ---
    p = sub.add_parser("db-update")
    p.add_argument("database_id")
    p.add_argument("--title", "-t")
    p.add_argument("--add-prop", dest="add_prop", action="append", metavar="NAME:TYPE")
    p.add_argument("--remove-prop", dest="remove_prop", action="append", metavar="NAME")
    p.set_defaults(func=cmd_db_update)

    # --- blocks / block ---
    p = sub.add_parser("blocks")
    p.add_argument("block_id")
    _add_paging(p)
    p.set_defaults(func=cmd_blocks)

    p = sub.add_parser("block")
    p.add_argument("block_id")
    p.set_defaults(func=cmd_block)

    # --- block-append ---
    p = sub.add_parser("block-append")
    p.add_argument("block_id")
    p.add_argument("--text", "-t")
    p.add_argument("--heading1")
    p.add_argument("--heading2")
    p.add_argument("--heading3")
    p.add_argument("--bullet", action="append", default=[])
    p.add_argument("--numbered", action="append", default=[])
    p.add_argument("--todo", action="append", default=[])
    p.add_argument("--code")
    p.add_argument("--code-lang", dest="code_lang", default="plain text")
    p.add_argument("--quote")
    p.add_argument("--callout")
    p.add_argument("--divider", action="store_true")
    p.add_argument("--after")
    p.set_defaults(func=cmd_block_append)

    # --- block-update / block-delete ---
    p = sub.add_parser("block-update")
    p.add_argument("block_id")
    p.add_argument("--text", "-t")
    p.add_argument("--archive", action="store_true")
    p.set_defaults(func=cmd_block_update)

    p = sub.add_parser("block-delete")
    p.add_argument("block_id")
    p.set_defaults(func=cmd_block_delete)

    # --- comments ---
    p = sub.add_parser("comments")
    p.add_argument("block_id")
    _add_paging(p)
    p.set_defaults(func=cmd_comments)

    p = sub.add_parser("comment")
    p.add_argument("comment_id")
    p.set_defaults(func=cmd_comment)

    p = sub.add_parser("comment-create")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--page")
    target.add_argument("--discussion")
    p.add_argument("--text", "-t", required=True)
    p.set_defaults(func=cmd_comment_create)

    # --- users ---
    p = sub.add_parser("users")
    _add_paging(p)
    p.set_defaults(func=cmd_users)

    p = sub.add_parser("user")
    p.add_argument("user_id")
    p.set_defaults(func=cmd_user)

    sub.add_parser("me").set_defaults(func=cmd_me)

    # --- find ---
    p = sub.add_parser("find")
    p.add_argument("query")
    p.add_argument("--database", "-d", required=True)
    p.add_argument("--limit", "-l", type=_page_size, default=20)
    p.add_argument("--explain", action="store_true")
    p.add_argument("--patterns", metavar="FILE")
    p.set_defaults(func=cmd_find)

    # --- bulk ---
    p = sub.add_parser("bulk-update")
    p.add_argument("database_id")
    p.add_argument("--where", "-w", required=True)
    p.add_argument("--set", required=True)
    p.add_argument("--limit", type=_page_size, default=100)
    p.add_argument("--yes", "-y", action="store_true")
    p.set_defaults(func=cmd_bulk_update)

    for name in ("bulk-archive", "bulk-delete"):
        p = sub.add_parser(name)
        p.add_argument("database_id")
        p.add_argument("--where", "-w", required=True)
        p.add_argument("--limit", type=_page_size, default=100)
        p.add_argument("--yes", "-y", action="store_true")
        p.set_defaults(func=cmd_bulk_archive)

    # --- inspect ---
    p = sub.add_parser("inspect-schema")
    p.add_argument("database_id")
    p.set_defaults(func=cmd_inspect_schema)

    p = sub.add_parser("inspect-context")
    p.add_argument("database_id")
    p.add_argument("--examples", type=_page_size, default=3)
    p.set_defaults(func=cmd_inspect_context)

    p = sub.add_parser("inspect-workspace")
    _add_paging(p, default_limit=20)
    p.set_defaults(func=cmd_inspect_workspace)

    # --- relations ---
    for name, handler in (
        ("relation-link", cmd_relation_link),
        ("relation-unlink", cmd_relation_unlink),
    ):
        p = sub.add_parser(name)
        p.add_argument("source_id")
        p.add_argument("target_id")
        p.add_argument("--property", "-p", required=True)
        p.add_argument("--bidirectional", action="store_true")
        p.set_defaults(func=handler)

    p = sub.add_parser("backlinks")
    p.add_argument("page_id")
    p.add_argument("--mentions", action="store_true")
    p.set_defaults(func=cmd_backlinks)

    # --- batch ---
    p = sub.add_parser("batch")
    p.add_argument("--file", "-f")
    p.add_argument("--data")
    p.add_argument("--stop-on-error", dest="stop_on_error", action="store_true")
    p.set_defaults(func=cmd_batch)

    # --- api ---
    p = sub.add_parser("api")
    p.add_argument("method", type=str.upper, choices=sorted(config.VALID_HTTP_METHODS))
    p.add_argument("path")
    p.add_argument("--data")
    p.add_argument("--query")
    p.set_defaults(func=cmd_api)

    # --- version (bare word) ---
    sub.add_parser("version").set_defaults(func=None)

    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

# "me" performs the token check itself.
NO_TOKEN_COMMANDS = {"version", "me"}


def _error_type_from_message(message):
    if message.startswith("[TOKEN_EXPIRED]"):
        return "token_expired"
    if message.startswith("[SETUP_NEEDED]"):
        return "setup_needed"
    if message.startswith("[ERROR]"):
        return "error"
    return "cli_error"


def _emit_cli_error(err, fmt):
    msg = str(err)
    if fmt == "json":
        payload = {
            "ok": False,
            "schema_version": config.CONTRACT_SCHEMA_VERSION,
            "error": {
                "type": _error_type_from_message(msg),
                "message": msg,
                "exit_code": getattr(err, "exit_code", 1),
            },
        }
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return
    print(msg, file=sys.stderr)


def main(argv=None):
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(HELP_TEXT)
        sys.exit(0)

    fmt = "json"
    try:
        # Extract global flags from anywhere in argv
        fmt, token, dry_run, quiet, verbose, remaining_argv = _extract_global_flags(argv)
        config.RUNTIME_DRY_RUN = dry_run
        config.RUNTIME_QUIET = quiet
        config.RUNTIME_VERBOSE = verbose
        if verbose:
            config.HTTP_LOG_ENABLED = True
        if token:
            config.TOKEN = config.resolve_token(token)

        if not remaining_argv:
            print(HELP_TEXT)
            sys.exit(0)

        parser = build_parser()
        ns = parser.parse_args(remaining_argv)
        ns.format = fmt  # inject global format flag

        if ns.show_help or not ns.command:
            print(HELP_TEXT)
            sys.exit(0)

        cmd = ns.command

        if cmd == "version":
            print(f"notion-cli {config.VERSION}")
            sys.exit(0)

        # Validate token before any API command
        if cmd not in NO_TOKEN_COMMANDS:
            _check_token()

        handler = getattr(ns, "func", None)
        if handler:
            handler(ns)
        else:
            raise CliError(f"[ERROR] Unknown command: {cmd}")

    except CliError as e:
        _emit_cli_error(e, fmt)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
