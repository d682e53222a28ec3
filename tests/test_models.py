"""Tests for models.py and blocks.py: payload models and block builders."""

import pytest

from notion_cli import blocks
from notion_cli.exceptions import CliError
from notion_cli.models import ObjectPayload, PropertyDefinition, QueryOptions


class TestObjectPayload:
    def test_dict(self):
        assert ObjectPayload.from_value({"a": 1}, "--data").data == {"a": 1}

    def test_rejects_list(self):
        with pytest.raises(CliError, match="expected object, got list"):
            ObjectPayload.from_value([1], "--data")


class TestPropertyDefinition:
    def test_parse(self):
        assert PropertyDefinition.parse("Due:date") == PropertyDefinition("Due", "date")

    def test_alias_and_colon_in_name(self):
        assert PropertyDefinition.parse("Ratio: A:B:text") == PropertyDefinition(
            "Ratio: A:B", "rich_text"
        )

    def test_to_api(self):
        assert PropertyDefinition("Tags", "multi_select").to_api() == {"multi_select": {}}

    @pytest.mark.parametrize("value", ["NoType", ":date", "Name:"])
    def test_invalid(self, value):
        with pytest.raises(CliError, match="Invalid property definition"):
            PropertyDefinition.parse(value)

    def test_unknown_type(self):
        with pytest.raises(CliError, match="Unknown property type 'widget'"):
            PropertyDefinition.parse("X:widget")


class TestQueryOptions:
    def test_empty_body(self):
        assert QueryOptions().to_body() == {}

    def test_full_body(self):
        body = QueryOptions(sort="Due", sort_dir="asc", limit=10, cursor="c1").to_body()
        assert body == {
            "sorts": [{"property": "Due", "direction": "ascending"}],
            "page_size": 10,
            "start_cursor": "c1",
        }

    def test_invalid_sort_dir(self):
        with pytest.raises(CliError, match="Invalid sort direction"):
            QueryOptions(sort_dir="up")

    @pytest.mark.parametrize("limit", [0, 101])
    def test_limit_bounds(self, limit):
        with pytest.raises(CliError, match="between 1 and 100"):
            QueryOptions(limit=limit)


class TestBlocks:
    def test_paragraph(self):
        assert blocks.paragraph("hi") == {
            "object": "block",
            "type": "paragraph",
            "paragraph": {"rich_text": [{"type": "text", "text": {"content": "hi"}}]},
        }

    def test_todo_checked_flag(self):
        assert blocks.todo("x")["to_do"]["checked"] is False

    def test_heading_level(self):
        assert blocks.heading("T", 2)["type"] == "heading_2"
        with pytest.raises(ValueError):
            blocks.heading("T", 4)

    def test_build_children_order(self):
        children = blocks.build_children(
            text="p",
            heading1="h",
            bullets=["b1", "b2"],
            todos=["t"],
            code_text="print()",
            code_lang="python",
            add_divider=True,
            callout_text="c",
        )
        assert [c["type"] for c in children] == [
            "paragraph",
            "heading_1",
            "bulleted_list_item",
            "bulleted_list_item",
            "to_do",
            "code",
            "divider",
            "callout",
        ]
        assert children[5]["code"]["language"] == "python"

    def test_build_children_empty(self):
        assert blocks.build_children() == []

    def test_block_text(self):
        assert blocks.block_text(
            {"type": "quote", "quote": {"rich_text": [{"plain_text": "q"}]}}
        ) == "q"
        assert blocks.block_text(blocks.divider()) == ""
