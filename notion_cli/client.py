"""
NotionClient: public Python API for a Notion workspace.

Single entry point for the CLI commands and the MCP server.
All methods return plain dicts suitable for JSON serialization.
"""

from __future__ import annotations

import json
import shlex

# TypedDict return types live in notion_cli.types for documentation.
# Method signatures use plain dict[str, Any] for mypy compatibility.
from typing import Any

from notion_cli import blocks, config
from notion_cli._utils import (
    database_title,
    normalize_id,
    page_title,
    plain_text,
    property_value,
    rich_text,
)
from notion_cli.api import (
    _check_token,
    _safe_json_parse,
    _try_call,
    api_request,
    delete,
    get,
    patch,
    post,
)
from notion_cli.compiler import (
    DEFAULT_PATTERN_PACK,
    DEFAULT_RESOLVER,
    FILTER_OPERATORS,
    RELATIVE_DATE_OPERATORS,
    UNARY_OPERATORS,
    PatternPack,
    TypeResolver,
    build_filter_leaf,
    build_write_payload,
    extract_facets,
    leaf_type,
    load_pattern_pack,
    make_leaf,
    operator_warning,
    parse_where_clause,
    plan_facet_filter,
    split_set_clause,
    title_payload,
)
from notion_cli.exceptions import CliError
from notion_cli.models import ObjectPayload, PropertyDefinition, QueryOptions
from notion_cli.schema import RELATION, CollectionSchema, PropertySchema

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_id(value, label):
    normalized = normalize_id(value)
    if not normalized:
        raise CliError(f"[ERROR] {label} is required.")
    return normalized


def _object_payload(value, context):
    """Accept a dict or a JSON object string."""
    if isinstance(value, str):
        value = _safe_json_parse(value, context)
    return ObjectPayload.from_value(value, context).data


def _operator_takes_no_value(operator):
    return operator in UNARY_OPERATORS or operator in RELATIVE_DATE_OPERATORS


def _parse_query_params(raw):
    """Parse ``k=v,k2=v2`` into a dict for the raw api command."""
    params = {}
    for part in (raw or "").split(","):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep or not key.strip():
            raise CliError(f"[ERROR] Invalid query parameter '{part}'. Use key=value.")
        params[key.strip()] = value.strip()
    return params


BATCH_OPERATIONS = (
    "get page",
    "get database",
    "get block",
    "create page",
    "create database",
    "update page",
    "update database",
    "update block",
    "delete page",
    "delete database",
    "delete block",
    "query database",
    "append block",
)


def _example_commands(db_id, described):
    """Shell lines showing how to query and add to a described database."""
    lines = ["# Query all entries", f"notion-cli db-query {db_id}"]
    for entry in described["properties"]:
        if entry["type"] in ("status", "select") and entry.get("options"):
            clause = shlex.quote(f"{entry['name']}={entry['options'][0]}")
            lines += [
                "",
                f"# Filter by {entry['name']}",
                f"notion-cli db-query {db_id} --where {clause}",
            ]
            break
    lines += [
        "",
        "# Create a new entry",
        f'notion-cli page-create --parent {db_id} --title "New Entry"',
    ]
    return lines


# ---------------------------------------------------------------------------
# NotionClient
# ---------------------------------------------------------------------------


class NotionClient:
    """Public API surface for a Notion workspace.

    Also the schema provider for the filter compiler: every command that
    compiles user input fetches the database schema once, then hands it to
    the pure functions in ``notion_cli.compiler``.

    Raises CliError/SetupError on failure.
    """

    def __init__(
        self,
        *,
        validate_token=False,
        resolver: TypeResolver = DEFAULT_RESOLVER,
        pattern_pack: PatternPack | None = None,
    ):
        """Initialize the client.

        Args:
            validate_token: If True, call ``users/me`` before anything else.
            resolver: Shared TypeResolver for payloads, filters and where-clauses.
            pattern_pack: Smart-find pattern tables. Defaults to the built-in
                pack, merged with ``NOTION_CLI_PATTERNS`` when set.
        """
        if validate_token:
            _check_token()
        self.resolver = resolver
        self._pattern_pack = pattern_pack

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------

    def _write(self, method, path, body=None):
        """Send a mutation, or describe it when --dry-run is active."""
        if config.RUNTIME_DRY_RUN:
            return {
                "ok": True,
                "dry_run": True,
                "request": {"method": method, "path": path, "body": body},
            }
        if method == "POST":
            return post(path, body)
        if method == "PATCH":
            return patch(path, body)
        if method == "DELETE":
            return delete(path)
        raise CliError(f"[ERROR] Unsupported write method '{method}'.")

    def pattern_pack(self, path: str | None = None) -> PatternPack:
        """Pattern tables for smart find; *path* overrides NOTION_CLI_PATTERNS."""
        if path:
            return load_pattern_pack(path, self._pattern_pack or DEFAULT_PATTERN_PACK)
        if self._pattern_pack is None:
            if config.PATTERNS_PATH:
                self._pattern_pack = load_pattern_pack(config.PATTERNS_PATH)
            else:
                self._pattern_pack = DEFAULT_PATTERN_PACK
        return self._pattern_pack

    # -------------------------------------------------------------------
    # Schema provider
    # -------------------------------------------------------------------

    def get_schema(self, database_id: str) -> CollectionSchema:
        """Fetch a database and build its CollectionSchema."""
        db_id = _require_id(database_id, "Database ID")
        return CollectionSchema.from_api(get(f"databases/{db_id}"))

    # -------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------

    def search(
        self,
        query: str | None = None,
        *,
        object_type: str | None = None,
        sort: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """Search pages and databases shared with the integration.

        Args:
            query: Text to match against titles. Empty lists everything.
            object_type: 'page' or 'database'.
            sort: 'asc' or 'desc' by last edited time.
            limit: Page size (1-100).
            cursor: Cursor from a previous response.
        """
        body: dict[str, Any] = {}
        if query:
            body["query"] = query
        if object_type:
            if object_type not in config.VALID_SEARCH_TYPES:
                raise CliError(
                    f"[ERROR] Invalid search type '{object_type}'. "
                    f"Valid: {', '.join(sorted(config.VALID_SEARCH_TYPES))}"
                )
            body["filter"] = {"property": "object", "value": object_type}
        if sort:
            if sort not in config.VALID_SORT_DIRECTIONS:
                raise CliError(f"[ERROR] Invalid sort direction '{sort}'. Use asc or desc.")
            body["sort"] = {
                "direction": "ascending" if sort == "asc" else "descending",
                "timestamp": "last_edited_time",
            }
        body.update(QueryOptions(limit=limit, cursor=cursor).to_body())
        return post("search", body)

    # -------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------

    def get_page(self, page_id: str, *, content: bool = False) -> dict[str, Any]:
        """Retrieve a page, optionally with its first page of child blocks."""
        pid = _require_id(page_id, "Page ID")
        page = get(f"pages/{pid}")
        if not content:
            return page
        return {"page": page, "blocks": get(f"blocks/{pid}/children")}

    def create_page(
        self,
        parent_id: str,
        *,
        parent_type: str = "database",
        title: str | None = None,
        title_prop: str | None = None,
        props: list[str] | None = None,
        content: str | None = None,
    ) -> dict[str, Any]:
        """Create a page under a database or another page.

        Args:
            parent_id: Parent database or page ID.
            parent_type: 'database' or 'page'.
            title: Page title, written to the database's title property.
            title_prop: Explicit title property name (skips detection).
            props: ``key=value`` property assignments.
            content: Optional first paragraph.
        """
        if parent_type not in config.VALID_PARENT_TYPES:
            raise CliError(
                f"[ERROR] Invalid parent type '{parent_type}'. "
                f"Valid: {', '.join(sorted(config.VALID_PARENT_TYPES))}"
            )
        pid = _require_id(parent_id, "Parent ID")
        schema = None
        if parent_type == "database" and (props or (title and not title_prop)):
            # Best effort: without a schema the title falls back to "Name"
            # and values are typed by shape alone.
            schema = _try_call(self.get_schema, pid)
        properties: dict[str, Any] = {}
        if title:
            if parent_type == "page":
                properties["title"] = {"title": rich_text(title)}
            else:
                properties.update(title_payload(title, schema, title_prop))
        if props:
            properties.update(build_write_payload(props, schema, resolver=self.resolver))
        body: dict[str, Any] = {"parent": {f"{parent_type}_id": pid}, "properties": properties}
        if content:
            body["children"] = [blocks.paragraph(content)]
        return self._write("POST", "pages", body)

    def update_page(
        self,
        page_id: str,
        *,
        props: list[str] | None = None,
        archived: bool | None = None,
        database_id: str | None = None,
    ) -> dict[str, Any]:
        """Update page properties and/or its archived flag.

        With *database_id* the values are encoded by the declared property
        types; otherwise by the shape of each value.
        """
        pid = _require_id(page_id, "Page ID")
        body: dict[str, Any] = {}
        if props:
            schema = self.get_schema(database_id) if database_id else None
            body["properties"] = build_write_payload(props, schema, resolver=self.resolver)
        if archived is not None:
            body["archived"] = archived
        if not body:
            raise CliError("[ERROR] Nothing to update. Use --prop, --archive or --unarchive.")
        return self._write("PATCH", f"pages/{pid}", body)

    def archive_page(self, page_id: str) -> dict[str, Any]:
        pid = _require_id(page_id, "Page ID")
        return self._write("PATCH", f"pages/{pid}", {"archived": True})

    def get_page_property(self, page_id: str, property_id: str) -> dict[str, Any]:
        """Retrieve one (possibly paginated) page property item."""
        pid = _require_id(page_id, "Page ID")
        if not property_id:
            raise CliError("[ERROR] Property ID is required.")
        return get(f"pages/{pid}/properties/{property_id}")

    # -------------------------------------------------------------------
    # Databases
    # -------------------------------------------------------------------

    def get_database(self, database_id: str) -> dict[str, Any]:
        db_id = _require_id(database_id, "Database ID")
        return get(f"databases/{db_id}")

    def build_query_filter(
        self,
        database_id: str,
        *,
        filter_json: dict | str | None = None,
        filter_prop: str | None = None,
        filter_type: str | None = None,
        filter_value: str | None = None,
        filter_prop_type: str | None = None,
        where: str | None = None,
    ) -> tuple[dict | None, list[str]]:
        """Compile the query filter from exactly one of the three input styles.

        Returns ``(filter, warnings)``.
        """
        given = [
            name
            for name, present in (
                ("--filter", bool(filter_json)),
                ("--filter-prop", bool(filter_prop)),
                ("--where", where is not None),
            )
            if present
        ]
        if len(given) > 1:
            raise CliError(f"[ERROR] Use only one of {', '.join(given)}.")

        if filter_json:
            return _object_payload(filter_json, "--filter"), []

        if where is not None:
            return self._compile_where(database_id, where)

        if filter_prop:
            return self._compile_filter_leaf(
                database_id, filter_prop, filter_type, filter_value, filter_prop_type
            )

        return None, []

    def _compile_where(self, database_id, where):
        schema = self.get_schema(database_id)
        compiled, warnings = parse_where_clause(where, schema, resolver=self.resolver)
        if compiled is None:
            raise CliError(
                f"[ERROR] Invalid --where clause '{where}'. "
                f"No condition matched the database schema ({', '.join(schema.names())})."
            )
        return compiled, warnings

    def _compile_filter_leaf(self, database_id, prop, operator, value, prop_type):
        if not operator:
            raise CliError("[ERROR] --filter-prop requires --filter-type (e.g. equals).")
        if value is None and not _operator_takes_no_value(operator):
            raise CliError(f"[ERROR] --filter-type {operator} requires --filter-value.")
        schema = None
        if not prop_type:
            schema = _try_call(self.get_schema, database_id)
        leaf = build_filter_leaf(
            prop, operator, value, prop_type, schema, resolver=self.resolver
        )
        warnings = []
        message = operator_warning(prop, leaf_type(leaf), operator)
        if message:
            warnings.append(message)
        return leaf, warnings

    def query_database(
        self,
        database_id: str,
        *,
        filter: dict | None = None,
        sort: str | None = None,
        sort_dir: str = "desc",
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """Run one page of a database query.

        Returns:
            dict with keys: results, has_more, next_cursor.
        """
        db_id = _require_id(database_id, "Database ID")
        body = QueryOptions(sort=sort, sort_dir=sort_dir, limit=limit, cursor=cursor).to_body()
        if filter:
            body["filter"] = filter
        return post(f"databases/{db_id}/query", body)

    def create_database(
        self,
        parent_page_id: str,
        title: str,
        *,
        properties: list[str] | None = None,
        inline: bool = False,
    ) -> dict[str, Any]:
        """Create a database under a page.

        Args:
            parent_page_id: Parent page ID.
            title: Database title.
            properties: ``name:type`` column definitions. A ``Name`` title
                column is added unless one of them is a title.
            inline: Create as an inline database.
        """
        if not title:
            raise CliError("[ERROR] Database title is required.")
        pid = _require_id(parent_page_id, "Parent page ID")
        definitions = [PropertyDefinition.parse(p) for p in properties or []]
        props: dict[str, Any] = {}
        if not any(d.type == "title" for d in definitions):
            props["Name"] = {"title": {}}
        for definition in definitions:
            props[definition.name] = definition.to_api()
        body: dict[str, Any] = {
            "parent": {"type": "page_id", "page_id": pid},
            "title": rich_text(title),
            "properties": props,
        }
        if inline:
            body["is_inline"] = True
        return self._write("POST", "databases", body)

    def update_database(
        self,
        database_id: str,
        *,
        title: str | None = None,
        add_props: list[str] | None = None,
        remove_props: list[str] | None = None,
    ) -> dict[str, Any]:
        """Rename a database and/or add and remove columns."""
        db_id = _require_id(database_id, "Database ID")
        body: dict[str, Any] = {}
        if title:
            body["title"] = rich_text(title)
        props: dict[str, Any] = {}
        for raw in add_props or []:
            definition = PropertyDefinition.parse(raw)
            props[definition.name] = definition.to_api()
        for name in remove_props or []:
            props[name] = None
        if props:
            body["properties"] = props
        if not body:
            raise CliError("[ERROR] Nothing to update. Use --title, --add-prop or --remove-prop.")
        return self._write("PATCH", f"databases/{db_id}", body)

    # -------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------

    def list_blocks(
        self, block_id: str, *, limit: int | None = None, cursor: str | None = None
    ) -> dict[str, Any]:
        bid = _require_id(block_id, "Block ID")
        params = {"page_size": limit, "start_cursor": cursor}
        return get(f"blocks/{bid}/children", params)

    def get_block(self, block_id: str) -> dict[str, Any]:
        bid = _require_id(block_id, "Block ID")
        return get(f"blocks/{bid}")

    def append_blocks(
        self, block_id: str, children: list[dict], *, after: str | None = None
    ) -> dict[str, Any]:
        """Append child blocks to a page or block."""
        bid = _require_id(block_id, "Block ID")
        if not children:
            raise CliError(
                "[ERROR] No content to append. Use --text, --heading1, --bullet, --todo, etc."
            )
        body: dict[str, Any] = {"children": children}
        if after:
            body["after"] = normalize_id(after)
        return self._write("PATCH", f"blocks/{bid}/children", body)

    def update_block(
        self, block_id: str, *, text: str | None = None, archived: bool | None = None
    ) -> dict[str, Any]:
        """Replace a text block's content and/or archive it."""
        bid = _require_id(block_id, "Block ID")
        body: dict[str, Any] = {}
        if text is not None:
            block = get(f"blocks/{bid}")
            btype = block.get("type")
            if btype not in blocks.TEXT_BLOCK_TYPES:
                raise CliError(f"[ERROR] Block type '{btype}' has no text content to update.")
            body[btype] = {"rich_text": rich_text(text)}
        if archived is not None:
            body["archived"] = archived
        if not body:
            raise CliError("[ERROR] Nothing to update. Use --text or --archive.")
        return self._write("PATCH", f"blocks/{bid}", body)

    def delete_block(self, block_id: str) -> dict[str, Any]:
        bid = _require_id(block_id, "Block ID")
        return self._write("DELETE", f"blocks/{bid}")

    # -------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------

    def list_comments(
        self, block_id: str, *, limit: int | None = None, cursor: str | None = None
    ) -> dict[str, Any]:
        bid = _require_id(block_id, "Block ID")
        return get("comments", {"block_id": bid, "page_size": limit, "start_cursor": cursor})

    def get_comment(self, comment_id: str) -> dict[str, Any]:
        cid = _require_id(comment_id, "Comment ID")
        return get(f"comments/{cid}")

    def create_comment(
        self,
        text: str,
        *,
        page_id: str | None = None,
        discussion_id: str | None = None,
    ) -> dict[str, Any]:
        """Comment on a page (new discussion) or reply in an existing discussion."""
        if not text:
            raise CliError("[ERROR] Comment text is required.")
        if bool(page_id) == bool(discussion_id):
            raise CliError("[ERROR] Use exactly one of --page or --discussion.")
        body: dict[str, Any] = {"rich_text": rich_text(text)}
        if page_id:
            body["parent"] = {"page_id": normalize_id(page_id)}
        else:
            body["discussion_id"] = discussion_id
        return self._write("POST", "comments", body)

    # -------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------

    def list_users(self, *, limit: int | None = None, cursor: str | None = None) -> dict[str, Any]:
        return get("users", {"page_size": limit, "start_cursor": cursor})

    def get_user(self, user_id: str) -> dict[str, Any]:
        uid = _require_id(user_id, "User ID")
        return get(f"users/{uid}")

    def me(self) -> dict[str, Any]:
        return get("users/me")

    # -------------------------------------------------------------------
    # Smart find
    # -------------------------------------------------------------------

    def find(
        self,
        database_id: str,
        query: str,
        *,
        limit: int = 20,
        explain: bool = False,
        patterns: str | None = None,
        today: str | None = None,
    ) -> dict[str, Any]:
        """Query a database with a free-text description.

        The query is reduced to facets (status, unassigned, date, priority,
        tags), each facet is resolved against the database schema, and the
        resolved leaves are combined with AND. Facets that do not resolve
        are dropped; ``explain`` shows them without running the query.

        Returns:
            dict with keys: query, database_id, facets, filter, and either
            results/has_more/next_cursor or explain/command.
        """
        if not (query or "").strip():
            raise CliError("[ERROR] Find query cannot be empty.")
        db_id = _require_id(database_id, "Database ID")
        schema = self.get_schema(db_id)
        pack = self.pattern_pack(patterns)
        facets = extract_facets(query, pack, today)
        plan = plan_facet_filter(facets, schema, pack)
        result: dict[str, Any] = {
            "query": query,
            "database_id": db_id,
            "facets": [p.as_dict() for p in plan.facets],
            "filter": plan.filter,
        }
        if explain:
            result["explain"] = True
            command = f"notion-cli db-query {db_id}"
            if plan.filter is not None:
                command += " --filter " + shlex.quote(json.dumps(plan.filter, ensure_ascii=False))
            result["command"] = command
            return result
        response = self.query_database(db_id, filter=plan.filter, limit=limit)
        result["results"] = response.get("results", [])
        result["has_more"] = bool(response.get("has_more"))
        result["next_cursor"] = response.get("next_cursor")
        return result

    # -------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------

    def _bulk_targets(self, database_id, where, limit):
        db_id = _require_id(database_id, "Database ID")
        schema = self.get_schema(db_id)
        compiled, warnings = parse_where_clause(where or "", schema, resolver=self.resolver)
        if compiled is None:
            raise CliError(
                f"[ERROR] Invalid --where clause '{where or ''}'. "
                f"No condition matched the database schema ({', '.join(schema.names())})."
            )
        response = self.query_database(db_id, filter=compiled, limit=limit)
        return db_id, schema, compiled, warnings, response

    def _bulk_apply(self, pages, body, execute):
        per_page = []
        done = 0
        failed = 0
        for page in pages:
            row = {"page_id": page.get("id"), "title": page_title(page)}
            if not execute:
                per_page.append(row)
                continue
            try:
                self._write("PATCH", f"pages/{page.get('id')}", body)
                done += 1
                row["ok"] = True
            except CliError as e:
                failed += 1
                row["ok"] = False
                row["error"] = str(e)
            per_page.append(row)
        return done, failed, per_page

    def bulk_update(
        self,
        database_id: str,
        *,
        where: str,
        set_clause: str,
        limit: int = 100,
        execute: bool = False,
    ) -> dict[str, Any]:
        """Update every page matching *where* with the *set_clause* assignments.

        Without *execute* nothing is written and the matching pages are
        returned as a preview. Per-page failures are counted, not raised.
        """
        db_id, schema, compiled, warnings, response = self._bulk_targets(
            database_id, where, limit
        )
        changes = build_write_payload(
            split_set_clause(set_clause), schema, resolver=self.resolver
        )
        if not changes:
            raise CliError('[ERROR] --set needs at least one assignment, e.g. "Status=Done".')
        pages = response.get("results", [])
        execute = execute and not config.RUNTIME_DRY_RUN
        updated, failed, per_page = self._bulk_apply(pages, {"properties": changes}, execute)
        return {
            "ok": failed == 0,
            "action": "update",
            "database_id": db_id,
            "executed": execute,
            "matched": len(pages),
            "has_more": bool(response.get("has_more")),
            "filter": compiled,
            "changes": changes,
            "warnings": warnings,
            "updated": updated,
            "failed": failed,
            "per_page": per_page,
        }

    def bulk_archive(
        self,
        database_id: str,
        *,
        where: str,
        limit: int = 100,
        execute: bool = False,
    ) -> dict[str, Any]:
        """Archive every page matching *where*. Same preview rules as bulk_update."""
        db_id, _schema, compiled, warnings, response = self._bulk_targets(
            database_id, where, limit
        )
        pages = response.get("results", [])
        execute = execute and not config.RUNTIME_DRY_RUN
        archived, failed, per_page = self._bulk_apply(pages, {"archived": True}, execute)
        return {
            "ok": failed == 0,
            "action": "archive",
            "database_id": db_id,
            "executed": execute,
            "matched": len(pages),
            "has_more": bool(response.get("has_more")),
            "filter": compiled,
            "warnings": warnings,
            "updated": archived,
            "failed": failed,
            "per_page": per_page,
        }

    # -------------------------------------------------------------------
    # Inspect
    # -------------------------------------------------------------------

    def inspect_workspace(
        self, *, limit: int | None = 20, cursor: str | None = None
    ) -> dict[str, Any]:
        """Databases shared with the integration, each with its columns described."""
        response = self.search(object_type="database", limit=limit, cursor=cursor)
        databases = []
        for db in response.get("results", []):
            databases.append(
                {
                    "id": db.get("id"),
                    "title": database_title(db),
                    "url": db.get("url"),
                    "description": plain_text(db.get("description")),
                    "properties": [
                        PropertySchema.from_api(name, raw or {}).describe()
                        for name, raw in (db.get("properties") or {}).items()
                    ],
                }
            )
        return {
            "databases": databases,
            "has_more": bool(response.get("has_more")),
            "next_cursor": response.get("next_cursor"),
        }

    def inspect_schema(self, database_id: str) -> dict[str, Any]:
        """Describe a database's columns for building filters and assignments.

        Each property carries its type, options (status options also by
        group), relation target, rollup source, result type and the filter
        operators its type accepts.
        """
        db = self.get_database(database_id)
        result = CollectionSchema.from_api(db).describe()
        for entry in result["properties"]:
            operators = FILTER_OPERATORS.get(entry["type"])
            if operators:
                entry["operators"] = sorted(operators)
        result["url"] = db.get("url")
        result["description"] = plain_text(db.get("description"))
        return result

    def inspect_context(self, database_id: str, *, examples: int = 3) -> dict[str, Any]:
        """Schema, a few example entries and ready-to-run commands for a database."""
        db_id = _require_id(database_id, "Database ID")
        described = self.inspect_schema(db_id)
        entries = []
        if examples:
            response = self.query_database(db_id, limit=examples)
            for page in response.get("results", []):
                values = {}
                for name, prop in (page.get("properties") or {}).items():
                    value = property_value(prop)
                    if value:
                        values[name] = value
                entries.append({"id": page.get("id"), "title": page_title(page), "values": values})
        return {
            "schema": described,
            "examples": entries,
            "commands": _example_commands(db_id, described),
        }

    # -------------------------------------------------------------------
    # Relations
    # -------------------------------------------------------------------

    def _relation_ids(self, page, property_name):
        prop = (page.get("properties") or {}).get(property_name) or {}
        if prop.get("type") != "relation":
            raise CliError(f"[ERROR] Property '{property_name}' is not a relation property.")
        if prop.get("has_more"):
            raise CliError(
                f"[ERROR] Relation '{property_name}' holds more entries than a page returns. "
                "Edit it with page-update instead."
            )
        return [normalize_id(r.get("id")) for r in prop.get("relation") or []]

    def _relink(self, source_id, target_id, property_name, bidirectional, link):
        if not property_name:
            raise CliError("[ERROR] Relation property name is required.")
        sid = _require_id(source_id, "Source page ID")
        tid = _require_id(target_id, "Target page ID")
        source = get(f"pages/{sid}")
        target = get(f"pages/{tid}")
        action = "link" if link else "unlink"
        warnings = []

        # Read both sides before writing either.
        plan = [(sid, tid, self._relation_ids(source, property_name))]
        if bidirectional:
            reverse = (target.get("properties") or {}).get(property_name) or {}
            if reverse.get("type") == "relation":
                plan.append((tid, sid, self._relation_ids(target, property_name)))
            else:
                warnings.append(
                    f"Target page has no relation property '{property_name}', "
                    f"skipping the reverse {action}"
                )

        changes = []
        for page_id, related_id, ids in plan:
            if link:
                new_ids = ids if related_id in ids else ids + [related_id]
            else:
                new_ids = [i for i in ids if i != related_id]
            change = {"page_id": page_id, "related_id": related_id, "changed": new_ids != ids}
            if change["changed"]:
                body = {"properties": {property_name: {"relation": [{"id": i} for i in new_ids]}}}
                response = self._write("PATCH", f"pages/{page_id}", body)
                if response.get("dry_run"):
                    change["request"] = response["request"]
            changes.append(change)
        return {
            "ok": True,
            "action": action,
            "property": property_name,
            "source": {"id": sid, "title": page_title(source)},
            "target": {"id": tid, "title": page_title(target)},
            "changes": changes,
            "warnings": warnings,
        }

    def link_pages(
        self,
        source_id: str,
        target_id: str,
        *,
        property_name: str,
        bidirectional: bool = False,
    ) -> dict[str, Any]:
        """Add *target_id* to the relation *property_name* of *source_id*.

        Existing entries are kept; linking an already-linked page writes
        nothing. With *bidirectional* the target's property of the same
        name gets the source.
        """
        return self._relink(source_id, target_id, property_name, bidirectional, link=True)

    def unlink_pages(
        self,
        source_id: str,
        target_id: str,
        *,
        property_name: str,
        bidirectional: bool = False,
    ) -> dict[str, Any]:
        """Remove *target_id* from the relation *property_name* of *source_id*."""
        return self._relink(source_id, target_id, property_name, bidirectional, link=False)

    def backlinks(
        self, page_id: str, *, mentions: bool = False, limit: int = 100
    ) -> dict[str, Any]:
        """Pages whose relation properties point at *page_id*.

        The page's parent database and every database it relates to are
        scanned for relation columns targeting that parent; each such column
        is queried with ``relation contains``. One-way relations from
        databases the parent does not relate back to cannot be found.

        With *mentions*, pages found by a title search are listed as well.
        """
        pid = _require_id(page_id, "Page ID")
        page = get(f"pages/{pid}")
        title = page_title(page)
        warnings = []
        links = []
        seen = {pid}
        parent_db = normalize_id((page.get("parent") or {}).get("database_id"))
        if parent_db:
            home = self.get_schema(parent_db)
            candidates = {parent_db: home}
            for prop in home.of_types({RELATION}):
                target = normalize_id(prop.relation_target)
                if not target or target in candidates:
                    continue
                schema = _try_call(self.get_schema, target)
                if schema is None:
                    warnings.append(f"Related database {target} is not accessible, skipping")
                    continue
                candidates[target] = schema
            for db_id, schema in candidates.items():
                for prop in schema.of_types({RELATION}):
                    if normalize_id(prop.relation_target) != parent_db:
                        continue
                    leaf = make_leaf(prop.name, RELATION, "contains", pid)
                    response = self.query_database(db_id, filter=leaf, limit=limit)
                    for hit in response.get("results", []):
                        links.append(
                            {
                                "page_id": hit.get("id"),
                                "title": page_title(hit),
                                "database_id": db_id,
                                "property": prop.name,
                                "url": hit.get("url"),
                            }
                        )
                        seen.add(normalize_id(hit.get("id")))
        else:
            warnings.append("Page is not in a database, so no relation can point at it")

        found_mentions = []
        if mentions and title:
            response = self.search(title, object_type="page", limit=50)
            for hit in response.get("results", []):
                if normalize_id(hit.get("id")) in seen:
                    continue
                found_mentions.append(
                    {"page_id": hit.get("id"), "title": page_title(hit), "url": hit.get("url")}
                )
        return {
            "target": {"id": pid, "title": title},
            "backlinks": links,
            "mentions": found_mentions,
            "warnings": warnings,
        }

    # -------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------

    def _batch_properties(self, data, database_id):
        """Raw ``properties`` merged with ``props`` assignments typed by the schema."""
        properties = dict(data.get("properties") or {})
        props = data.get("props")
        if props:
            if isinstance(props, str):
                props = [props]
            schema = _try_call(self.get_schema, database_id) if database_id else None
            properties.update(build_write_payload(props, schema, resolver=self.resolver))
        return properties

    def _batch_op(self, op):
        if not isinstance(op, dict):
            raise CliError("[ERROR] Batch operation must be a JSON object.")
        data = op.get("data") or {}
        if not isinstance(data, dict):
            raise CliError("[ERROR] Batch operation 'data' must be a JSON object.")
        verb, kind = op.get("op"), op.get("type")

        if verb == "get" and kind == "page":
            return self.get_page(op.get("id"))
        if verb == "get" and kind == "database":
            return self.get_database(op.get("id"))
        if verb == "get" and kind == "block":
            return self.get_block(op.get("id"))

        if verb == "create" and kind == "page":
            parent_type = data.get("parent_type", "database")
            if parent_type not in config.VALID_PARENT_TYPES:
                raise CliError(f"[ERROR] Invalid parent_type '{parent_type}'.")
            parent = _require_id(op.get("parent"), "Parent ID")
            body: dict[str, Any] = {
                "parent": {f"{parent_type}_id": parent},
                "properties": self._batch_properties(
                    data, parent if parent_type == "database" else None
                ),
            }
            if data.get("children"):
                body["children"] = data["children"]
            return self._write("POST", "pages", body)
        if verb == "create" and kind == "database":
            parent = _require_id(op.get("parent"), "Parent ID")
            title = data.get("title") or []
            properties = data.get("properties") or {"Name": {"title": {}}}
            body = {
                "parent": {"type": "page_id", "page_id": parent},
                "title": rich_text(title) if isinstance(title, str) else title,
                "properties": properties,
            }
            return self._write("POST", "databases", body)

        if verb == "update" and kind == "page":
            pid = _require_id(op.get("id"), "Page ID")
            body = {k: v for k, v in data.items() if k not in ("props", "database")}
            properties = self._batch_properties(data, data.get("database"))
            if properties:
                body["properties"] = properties
            if not body:
                raise CliError("[ERROR] Nothing to update. Give 'data.props' or a page body.")
            return self._write("PATCH", f"pages/{pid}", body)
        if verb == "update" and kind in ("database", "block"):
            oid = _require_id(op.get("id"), f"{kind.capitalize()} ID")
            return self._write("PATCH", f"{kind}s/{oid}", data)

        if verb == "delete" and kind == "block":
            return self.delete_block(op.get("id"))
        if verb == "delete" and kind == "page":
            return self.archive_page(op.get("id"))
        if verb == "delete" and kind == "database":
            db_id = _require_id(op.get("id"), "Database ID")
            return self._write("PATCH", f"databases/{db_id}", {"archived": True})

        if verb == "query" and kind == "database":
            db_id = _require_id(op.get("id"), "Database ID")
            body = dict(data)
            where = body.pop("where", None)
            warnings = []
            if where is not None:
                body["filter"], warnings = self._compile_where(db_id, where)
            response = post(f"databases/{db_id}/query", body)
            if warnings:
                response = {**response, "warnings": warnings}
            return response

        if verb == "append" and kind == "block":
            return self.append_blocks(op.get("id"), data.get("children") or [])

        raise CliError(
            f"[ERROR] Unknown batch operation '{verb} {kind}'. "
            f"Valid: {', '.join(BATCH_OPERATIONS)}"
        )

    def batch(self, operations, *, stop_on_error: bool = False) -> dict[str, Any]:
        """Run a list of operations in order, recording each outcome.

        Each operation is an object with ``op`` (get, create, update,
        delete, query, append), ``type`` (page, database, block) and the
        ``id``, ``parent`` or ``data`` it needs. Page create/update accept
        ``data.props`` as ``key=value`` assignments typed like page-create.
        Queries accept ``data.where``. A failed operation is recorded and
        the rest still run unless *stop_on_error* is set.
        """
        if isinstance(operations, dict):
            operations = [operations]
        if not isinstance(operations, list):
            raise CliError("[ERROR] Batch input must be a JSON array of operations.")
        if len(operations) > config.BATCH_MAX_OPERATIONS:
            raise CliError(
                f"[ERROR] Batch accepts at most {config.BATCH_MAX_OPERATIONS} operations "
                f"(got {len(operations)})."
            )
        results = []
        for index, op in enumerate(operations):
            label = f"{op.get('op')} {op.get('type')}" if isinstance(op, dict) else "?"
            row: dict[str, Any] = {"index": index, "op": label}
            try:
                row["result"] = self._batch_op(op)
                row["ok"] = True
            except CliError as e:
                row["ok"] = False
                row["error"] = str(e)
            results.append(row)
            if not row["ok"] and stop_on_error:
                break
        failed = sum(1 for row in results if not row["ok"])
        return {
            "ok": failed == 0,
            "total": len(operations),
            "succeeded": len(results) - failed,
            "failed": failed,
            "results": results,
        }

    # -------------------------------------------------------------------
    # Raw API
    # -------------------------------------------------------------------

    def raw_request(
        self,
        method: str,
        path: str,
        *,
        data: dict | str | None = None,
        query: str | dict | None = None,
    ) -> dict[str, Any]:
        """Call any endpoint under the API base URL.

        Args:
            method: GET, POST, PATCH or DELETE.
            path: Endpoint path, e.g. 'users/me' or '/v1/pages/<id>'.
            data: JSON body as a dict or JSON object string.
            query: Query parameters as a dict or ``k=v,k2=v2``.
        """
        verb = (method or "").upper()
        if verb not in config.VALID_HTTP_METHODS:
            raise CliError(
                f"[ERROR] Invalid HTTP method '{method}'. "
                f"Valid: {', '.join(sorted(config.VALID_HTTP_METHODS))}"
            )
        normalized = (path or "").strip().lstrip("/")
        if normalized.startswith("v1/"):
            normalized = normalized[len("v1/") :]
        if not normalized or " " in normalized:
            raise CliError("[ERROR] Invalid API path. Use e.g. users/me or pages/<id>.")
        payload = _object_payload(data, "--data") if data else None
        params = query if isinstance(query, dict) else _parse_query_params(query)
        if verb != "GET" and config.RUNTIME_DRY_RUN:
            return self._write(verb, normalized, payload)
        if payload is None and verb in ("POST", "PATCH"):
            payload = {}
        return api_request(normalized, payload, method=verb, params=params or None)
