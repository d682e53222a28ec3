"""notion-cli: command-line client for Notion pages, databases and blocks."""

from notion_cli.client import NotionClient
from notion_cli.config import VERSION
from notion_cli.exceptions import CliError, SetupError
from notion_cli.schema import CollectionSchema, PropertySchema, SelectOption
from notion_cli.types import (
    BatchResult,
    BulkPageResult,
    BulkResult,
    FindResult,
    MutationResult,
    QueryResult,
    RelationResult,
    SchemaProvider,
)

__all__ = [
    "VERSION",
    "NotionClient",
    "CliError",
    "SetupError",
    "CollectionSchema",
    "PropertySchema",
    "SelectOption",
    "BatchResult",
    "BulkPageResult",
    "BulkResult",
    "FindResult",
    "MutationResult",
    "QueryResult",
    "RelationResult",
    "SchemaProvider",
]
