"""Typed response definitions for NotionClient methods.

These TypedDicts document the shape of dicts returned by public API methods.
They are optional: runtime behavior is unchanged (plain dicts).
"""

from __future__ import annotations

from typing import Any, Protocol, TypedDict

from notion_cli.schema import CollectionSchema

# ---------------------------------------------------------------------------
# Schema provider
# ---------------------------------------------------------------------------


class SchemaProvider(Protocol):
    """What the compiler call sites need from the remote service."""

    def get_schema(self, database_id: str) -> CollectionSchema: ...

    def get_page(self, page_id: str, *, content: bool = False) -> dict[str, Any]: ...

    def query_database(
        self,
        database_id: str,
        *,
        filter: dict | None = None,
        sort: str | None = None,
        sort_dir: str = "desc",
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


class QueryResult(TypedDict, total=False):
    """Return type of NotionClient.query_database()."""

    object: str
    results: list[dict]
    has_more: bool
    next_cursor: str | None
    filter: dict | None
    warnings: list[str]


class ExplainedFacet(TypedDict, total=False):
    kind: str
    value: str | None
    mode: str
    values: list[str]
    property: str | None
    resolved: bool
    leaves: list[dict]


class FindResult(TypedDict, total=False):
    """Return type of NotionClient.find()."""

    query: str
    database_id: str
    facets: list[ExplainedFacet]
    filter: dict | None
    results: list[dict]
    has_more: bool
    explain: bool


# ---------------------------------------------------------------------------
# Mutation results
# ---------------------------------------------------------------------------


class MutationResult(TypedDict, total=False):
    """Common shape for mutation responses."""

    ok: bool
    id: str
    dry_run: bool
    request: dict
    data: dict


class BulkPageResult(TypedDict, total=False):
    page_id: str
    title: str
    ok: bool
    error: str


class BulkResult(TypedDict, total=False):
    """Return type of NotionClient.bulk_update() / bulk_archive()."""

    ok: bool
    action: str
    executed: bool
    matched: int
    has_more: bool
    filter: dict
    changes: dict
    warnings: list[str]
    updated: int
    failed: int
    per_page: list[BulkPageResult]


# ---------------------------------------------------------------------------
# Relations / batch
# ---------------------------------------------------------------------------


class RelationChange(TypedDict, total=False):
    page_id: str
    related_id: str
    changed: bool
    request: dict


class RelationResult(TypedDict, total=False):
    """Return type of NotionClient.link_pages() / unlink_pages()."""

    ok: bool
    action: str
    property: str
    source: dict
    target: dict
    changes: list[RelationChange]
    warnings: list[str]


class BatchOperationResult(TypedDict, total=False):
    index: int
    op: str
    ok: bool
    result: dict
    error: str


class BatchResult(TypedDict, total=False):
    """Return type of NotionClient.batch()."""

    ok: bool
    total: int
    succeeded: int
    failed: int
    results: list[BatchOperationResult]
