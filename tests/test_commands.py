"""Tests for commands.py: command handlers.
Mocks NotionClient via _get_client; asserts on forwarded kwargs and output.
"""

import argparse
import io
import json
from unittest.mock import patch

import pytest

from notion_cli import config
from notion_cli.commands import (
    cmd_backlinks,
    cmd_batch,
    cmd_block_append,
    cmd_bulk_archive,
    cmd_bulk_update,
    cmd_db_query,
    cmd_find,
    cmd_inspect_context,
    cmd_inspect_schema,
    cmd_inspect_workspace,
    cmd_page_create,
    cmd_page_update,
    cmd_relation_link,
    cmd_relation_unlink,
    cmd_search,
)
from notion_cli.exceptions import CliError


def _ns(**kwargs):
    defaults = {"format": "json"}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def _db_query_ns(**kwargs):
    defaults = {
        "database_id": "db1",
        "filter": None,
        "filter_prop": None,
        "filter_type": None,
        "filter_value": None,
        "filter_prop_type": None,
        "where": None,
        "sort": None,
        "sort_dir": "desc",
        "limit": None,
        "cursor": None,
    }
    defaults.update(kwargs)
    return _ns(**defaults)


class TestSearch:
    @patch("notion_cli.commands._get_client")
    def test_forwards_args(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.search.return_value = {"results": []}
        cmd_search(_ns(query="q", type="page", sort="desc", limit=3, cursor=None))
        client.search.assert_called_once_with(
            "q", object_type="page", sort="desc", limit=3, cursor=None
        )
        assert json.loads(capsys.readouterr().out) == {"results": []}


class TestPages:
    @patch("notion_cli.commands._get_client")
    def test_page_create(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.create_page.return_value = {"id": "p1", "url": "https://notion.so/p1"}
        cmd_page_create(
            _ns(
                parent="db1",
                parent_type="database",
                title="T",
                title_prop=None,
                prop=["Status=Done"],
                content=None,
            )
        )
        kwargs = client.create_page.call_args.kwargs
        assert kwargs["props"] == ["Status=Done"]
        assert capsys.readouterr().out.startswith("OK: Page created: p1: https://notion.so/p1")

    @patch("notion_cli.commands._get_client")
    def test_page_update_archive_flags(self, mock_get_client):
        client = mock_get_client.return_value
        client.update_page.return_value = {}
        cmd_page_update(_ns(page_id="p1", prop=None, archive=False, unarchive=True, database=None))
        client.update_page.assert_called_once_with(
            "p1", props=None, archived=False, database_id=None
        )


class TestDbQuery:
    @patch("notion_cli.commands._get_client")
    def test_where_warnings_go_to_stderr(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        leaf = {"property": "Status", "status": {"equals": "Done"}}
        client.build_query_filter.return_value = (leaf, ["Property 'X' not found in schema"])
        client.query_database.return_value = {"results": []}
        cmd_db_query(_db_query_ns(where="Status=Done,X=1"))
        assert client.query_database.call_args.kwargs["filter"] == leaf
        captured = capsys.readouterr()
        assert "[WARN] Property 'X' not found in schema" in captured.err
        assert json.loads(captured.out) == {"results": []}

    @patch("notion_cli.commands._get_client")
    def test_quiet_suppresses_warnings(self, mock_get_client, capsys, monkeypatch):
        monkeypatch.setattr(config, "RUNTIME_QUIET", True)
        client = mock_get_client.return_value
        client.build_query_filter.return_value = (None, ["something"])
        client.query_database.return_value = {"results": []}
        cmd_db_query(_db_query_ns())
        assert capsys.readouterr().err == ""


class TestBlockAppend:
    @patch("notion_cli.commands._get_client")
    def test_builds_children(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.append_blocks.return_value = {"results": []}
        cmd_block_append(
            _ns(
                block_id="p1",
                text="Hello",
                heading1=None,
                heading2="Section",
                heading3=None,
                bullet=["a", "b"],
                numbered=[],
                todo=[],
                code=None,
                code_lang="plain text",
                quote=None,
                callout=None,
                divider=False,
                after=None,
            )
        )
        children = client.append_blocks.call_args.args[1]
        assert [c["type"] for c in children] == [
            "paragraph",
            "heading_2",
            "bulleted_list_item",
            "bulleted_list_item",
        ]
        assert "4 block(s)" in capsys.readouterr().out


class TestFind:
    @patch("notion_cli.commands._get_client")
    def test_explain_table(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.find.return_value = {
            "query": "done",
            "explain": True,
            "facets": [],
            "filter": None,
            "command": "notion-cli db-query db1",
        }
        cmd_find(
            _ns(database="db1", query="done", limit=20, explain=True, patterns=None, format="table")
        )
        client.find.assert_called_once_with(
            "db1", "done", limit=20, explain=True, patterns=None
        )
        assert "No facets recognized." in capsys.readouterr().out


class TestBulk:
    @patch("notion_cli.commands._get_client")
    def test_preview_hint(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.bulk_update.return_value = {"matched": 2, "executed": False, "per_page": []}
        cmd_bulk_update(_ns(database_id="db1", where="A=1", set="B=2", limit=100, yes=False))
        client.bulk_update.assert_called_once_with(
            "db1", where="A=1", set_clause="B=2", limit=100, execute=False
        )
        assert "Re-run with --yes" in capsys.readouterr().err

    @patch("notion_cli.commands._get_client")
    def test_dry_run_hint(self, mock_get_client, capsys, monkeypatch):
        monkeypatch.setattr(config, "RUNTIME_DRY_RUN", True)
        client = mock_get_client.return_value
        client.bulk_archive.return_value = {"matched": 1, "executed": False, "per_page": []}
        cmd_bulk_archive(_ns(database_id="db1", where="A=1", limit=100, yes=True))
        assert "Dry run: no changes made." in capsys.readouterr().err

    @patch("notion_cli.commands._get_client")
    def test_where_warnings_and_failures_printed(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.bulk_update.return_value = {
            "action": "update",
            "matched": 2,
            "executed": True,
            "updated": 1,
            "failed": 1,
            "warnings": ["Property 'Nope' not found in schema, skipping"],
            "per_page": [
                {"page_id": "p1", "title": "A", "ok": True},
                {"page_id": "p2", "title": "B", "ok": False, "error": "[ERROR] conflict"},
            ],
        }
        cmd_bulk_update(
            _ns(database_id="db1", where="A=1,Nope=1", set="B=2", limit=100, yes=True)
        )
        err = capsys.readouterr().err
        assert "[WARN] Property 'Nope' not found in schema, skipping" in err
        assert "[WARN] Failed to update p2: [ERROR] conflict" in err
        assert "Re-run with --yes" not in err

    @patch("notion_cli.commands._get_client")
    def test_executed_has_no_hint(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.bulk_archive.return_value = {"matched": 1, "executed": True, "updated": 1}
        cmd_bulk_archive(_ns(database_id="db1", where="A=1", limit=100, yes=True))
        assert capsys.readouterr().err == ""


class TestInspect:
    @patch("notion_cli.commands._get_client")
    def test_schema_table(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.inspect_schema.return_value = {
            "database_id": "db1",
            "title": "Tasks",
            "properties": [{"name": "Done?", "type": "checkbox", "operators": ["equals"]}],
        }
        cmd_inspect_schema(_ns(database_id="db1", format="table"))
        client.inspect_schema.assert_called_once_with("db1")
        assert "    Filters: equals" in capsys.readouterr().out

    @patch("notion_cli.commands._get_client")
    def test_context_forwards_examples(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.inspect_context.return_value = {"schema": {}, "examples": [], "commands": []}
        cmd_inspect_context(_ns(database_id="db1", examples=5))
        client.inspect_context.assert_called_once_with("db1", examples=5)
        assert json.loads(capsys.readouterr().out)["examples"] == []

    @patch("notion_cli.commands._get_client")
    def test_workspace_forwards_paging(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.inspect_workspace.return_value = {"databases": [], "has_more": False}
        cmd_inspect_workspace(_ns(limit=10, cursor="c1", format="table"))
        client.inspect_workspace.assert_called_once_with(limit=10, cursor="c1")
        assert "No databases shared" in capsys.readouterr().out


class TestRelations:
    @patch("notion_cli.commands._get_client")
    def test_link_prints_warnings(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.link_pages.return_value = {
            "action": "link",
            "property": "Blocked by",
            "changes": [],
            "warnings": ["Target page has no relation property 'Blocked by'"],
        }
        cmd_relation_link(
            _ns(source_id="s1", target_id="t1", property="Blocked by", bidirectional=True)
        )
        client.link_pages.assert_called_once_with(
            "s1", "t1", property_name="Blocked by", bidirectional=True
        )
        assert "[WARN] Target page has no relation property" in capsys.readouterr().err

    @patch("notion_cli.commands._get_client")
    def test_unlink(self, mock_get_client):
        client = mock_get_client.return_value
        client.unlink_pages.return_value = {"changes": []}
        cmd_relation_unlink(
            _ns(source_id="s1", target_id="t1", property="Blocked by", bidirectional=False)
        )
        client.unlink_pages.assert_called_once_with(
            "s1", "t1", property_name="Blocked by", bidirectional=False
        )

    @patch("notion_cli.commands._get_client")
    def test_backlinks(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.backlinks.return_value = {
            "target": {"id": "p1", "title": "Design"},
            "backlinks": [],
            "mentions": [],
            "warnings": ["Page is not in a database, so no relation can point at it"],
        }
        cmd_backlinks(_ns(page_id="p1", mentions=True, format="table"))
        client.backlinks.assert_called_once_with("p1", mentions=True)
        captured = capsys.readouterr()
        assert "No backlinks found." in captured.out
        assert "[WARN] Page is not in a database" in captured.err


class TestBatch:
    _OK = {"ok": True, "total": 1, "succeeded": 1, "failed": 0, "results": []}

    @patch("notion_cli.commands._get_client")
    def test_data_flag(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.batch.return_value = self._OK
        ops = '[{"op": "get", "type": "page", "id": "p1"}]'
        cmd_batch(_ns(file=None, data=ops, stop_on_error=True))
        client.batch.assert_called_once_with(
            [{"op": "get", "type": "page", "id": "p1"}], stop_on_error=True
        )
        assert json.loads(capsys.readouterr().out)["succeeded"] == 1

    @patch("notion_cli.commands._get_client")
    def test_file(self, mock_get_client, tmp_path):
        client = mock_get_client.return_value
        client.batch.return_value = self._OK
        path = tmp_path / "ops.json"
        path.write_text('{"op": "get", "type": "block", "id": "b1"}', encoding="utf-8")
        cmd_batch(_ns(file=str(path), data=None, stop_on_error=False))
        assert client.batch.call_args.args[0] == {"op": "get", "type": "block", "id": "b1"}

    @patch("notion_cli.commands._get_client")
    def test_stdin(self, mock_get_client, monkeypatch):
        client = mock_get_client.return_value
        client.batch.return_value = self._OK
        monkeypatch.setattr("sys.stdin", io.StringIO("[]"))
        cmd_batch(_ns(file=None, data=None, stop_on_error=False))
        assert client.batch.call_args.args[0] == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(CliError, match="Cannot read batch file"):
            cmd_batch(_ns(file=str(tmp_path / "nope.json"), data=None, stop_on_error=False))

    def test_file_and_data_conflict(self):
        with pytest.raises(CliError, match="only one of --file or --data"):
            cmd_batch(_ns(file="ops.json", data="[]", stop_on_error=False))

    def test_invalid_json(self):
        with pytest.raises(CliError, match="Invalid JSON in batch input"):
            cmd_batch(_ns(file=None, data="[{", stop_on_error=False))

    @patch("notion_cli.commands._get_client")
    def test_failures_exit_nonzero_after_output(self, mock_get_client, capsys):
        client = mock_get_client.return_value
        client.batch.return_value = {
            "ok": False,
            "total": 2,
            "succeeded": 1,
            "failed": 1,
            "results": [],
        }
        with pytest.raises(CliError, match="1 of 2 batch operations failed"):
            cmd_batch(_ns(file=None, data="[{}, {}]", stop_on_error=False))
        assert json.loads(capsys.readouterr().out)["failed"] == 1
