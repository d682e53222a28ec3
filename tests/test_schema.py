"""Tests for schema.py: property and collection schema model."""

import pytest

from notion_cli.exceptions import CliError
from notion_cli.schema import CollectionSchema, PropertySchema, normalize_type


class TestNormalizeType:
    def test_aliases(self):
        assert normalize_type("text") == "rich_text"
        assert normalize_type(" Phone ") == "phone_number"

    def test_passthrough(self):
        assert normalize_type("STATUS") == "status"
        assert normalize_type(None) == ""


class TestPropertySchema:
    def test_options_with_status_groups(self):
        prop = PropertySchema.from_api(
            "Status",
            {
                "id": "s",
                "type": "status",
                "status": {
                    "options": [{"id": "o1", "name": "Done", "color": "green"}, {"id": "o2"}],
                    "groups": [{"name": "Complete", "option_ids": ["o1"]}],
                },
            },
        )
        assert prop.option_names == ["Done"]
        assert prop.options[0].group == "Complete"
        assert prop.options[0].color == "green"

    def test_non_option_type_has_no_options(self):
        prop = PropertySchema.from_api("N", {"type": "number", "number": {"format": "dollar"}})
        assert prop.options == ()
        assert prop.config == {"format": "dollar"}

    def test_relation_target(self):
        prop = PropertySchema.from_api(
            "Project", {"type": "relation", "relation": {"database_id": "db2"}}
        )
        assert prop.relation_target == "db2"
        assert PropertySchema("X", "select").relation_target is None

    def test_result_type(self):
        formula = PropertySchema.from_api("F", {"type": "formula", "formula": {"type": "number"}})
        rollup = PropertySchema.from_api("R", {"type": "rollup", "rollup": {"function": "sum"}})
        assert formula.result_type == "number"
        assert rollup.result_type == "sum"
        assert PropertySchema("X", "date").result_type is None

    def test_describe_groups_and_targets(self):
        status = PropertySchema.from_api(
            "Status",
            {
                "id": "s",
                "type": "status",
                "status": {
                    "options": [
                        {"id": "o1", "name": "Not started"},
                        {"id": "o2", "name": "Doing"},
                        {"id": "o3", "name": "Done"},
                    ],
                    "groups": [
                        {"name": "To-do", "option_ids": ["o1"]},
                        {"name": "In progress", "option_ids": ["o2"]},
                        {"name": "Complete", "option_ids": ["o3"]},
                    ],
                },
            },
        )
        assert status.describe() == {
            "name": "Status",
            "type": "status",
            "id": "s",
            "options": ["Not started", "Doing", "Done"],
            "groups": {"To-do": ["Not started"], "In progress": ["Doing"], "Complete": ["Done"]},
        }
        relation = PropertySchema.from_api(
            "Project", {"type": "relation", "relation": {"database_id": "db2"}}
        )
        assert relation.describe() == {
            "name": "Project",
            "type": "relation",
            "relation_target": "db2",
        }

    def test_describe_rollup(self):
        rollup = PropertySchema.from_api(
            "Effort",
            {
                "type": "rollup",
                "rollup": {
                    "relation_property_name": "Tasks",
                    "rollup_property_name": "Points",
                    "function": "sum",
                },
            },
        )
        assert rollup.rollup_source == "Tasks.Points"
        assert rollup.describe() == {
            "name": "Effort",
            "type": "rollup",
            "rollup_of": "Tasks.Points",
            "result_type": "sum",
            "read_only": True,
        }

    def test_select_options_have_no_groups(self):
        prop = PropertySchema.from_api(
            "Priority", {"type": "select", "select": {"options": [{"id": "a", "name": "High"}]}}
        )
        assert prop.option_groups == {}
        assert "groups" not in prop.describe()


class TestCollectionSchema:
    def test_from_api(self, tasks_schema):
        assert tasks_schema.title == "Tasks"
        assert tasks_schema.title_property.name == "Name"
        assert tasks_schema.names()[:3] == ["Name", "Status", "Priority"]
        assert len(tasks_schema) == 9

    def test_lookup(self, tasks_schema):
        assert "Status" in tasks_schema
        assert "status" not in tasks_schema
        assert tasks_schema.get("Points").type == "number"
        assert tasks_schema.get("Missing") is None

    def test_of_types_keeps_declaration_order(self, tasks_schema):
        names = [p.name for p in tasks_schema.of_types(("select", "status"))]
        assert names == ["Status", "Priority"]

    def test_requires_exactly_one_title(self):
        with pytest.raises(CliError, match="exactly one title property"):
            CollectionSchema.from_properties({"A": {"type": "rich_text"}})
        with pytest.raises(CliError, match="found 2"):
            CollectionSchema.from_properties({"A": {"type": "title"}, "B": {"type": "title"}})

    def test_missing_properties(self):
        with pytest.raises(CliError, match="no 'properties'"):
            CollectionSchema.from_api({"object": "database"})

    def test_describe(self, tasks_schema):
        described = tasks_schema.describe()
        assert described["title"] == "Tasks"
        assert described["title_property"] == "Name"
        assert [p["name"] for p in described["properties"]] == tasks_schema.names()
