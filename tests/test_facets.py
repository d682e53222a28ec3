"""Tests for compiler/_facets.py: facet extraction from free text."""

from notion_cli.compiler import (
    AssigneeEmptyFacet,
    DateFacet,
    PriorityFacet,
    StatusFacet,
    TagsFacet,
    extract_facets,
    extract_tags,
    pattern_pack_from_dict,
)

TODAY = "2024-05-01"


class TestExtractFacets:
    def test_overdue(self):
        assert extract_facets("overdue tasks", today=TODAY) == [DateFacet("before", TODAY)]

    def test_unassigned_spanish(self):
        assert extract_facets("sin asignar") == [AssigneeEmptyFacet()]

    def test_status_spanish(self):
        assert extract_facets("tareas en progreso") == [StatusFacet("in progress")]

    def test_status_first_match_wins(self):
        # "done" is declared before "todo"
        assert extract_facets("todo items that are done") == [StatusFacet("done")]

    def test_modified_today_is_generic_today(self):
        assert extract_facets("pages modified today", today=TODAY) == [
            DateFacet("equals", TODAY)
        ]

    def test_this_week_has_no_value(self):
        assert extract_facets("due this week") == [DateFacet("this_week")]

    def test_priority_and_tags(self):
        assert extract_facets("urgent bugs tagged ui, backend") == [
            PriorityFacet("high"),
            TagsFacet(("ui", "backend")),
        ]

    def test_all_facets_in_fixed_order(self):
        facets = extract_facets("done unassigned overdue urgent tagged x", today=TODAY)
        assert [f.kind for f in facets] == ["status", "assignee_empty", "date", "priority", "tags"]

    def test_case_insensitive(self):
        assert extract_facets("DONE") == [StatusFacet("done")]

    def test_nothing_recognized(self):
        assert extract_facets("hello world") == []
        assert extract_facets("") == []

    def test_today_defaults_to_current_date(self):
        (facet,) = extract_facets("overdue")
        assert len(facet.value) == 10
        assert facet.value[4] == "-"

    def test_custom_pack(self):
        pack = pattern_pack_from_dict({"status": {"done": ["fini"]}})
        assert extract_facets("tout est fini", pack) == [StatusFacet("done")]
        assert extract_facets("done", pack) == []


class TestExtractTags:
    def test_quoted(self):
        assert extract_tags('with tag "frontend"') == ("frontend",)

    def test_preserves_case(self):
        assert extract_tags("tagged UI") == ("UI",)

    def test_spanish_keyword(self):
        assert extract_tags("etiqueta diseño") == ("diseño",)

    def test_none(self):
        assert extract_tags("no tags here") == ()


class TestFacetDicts:
    def test_as_dict(self):
        assert StatusFacet("done").as_dict() == {"kind": "status", "value": "done"}
        assert AssigneeEmptyFacet().as_dict() == {"kind": "assignee_empty", "value": "is_empty"}
        assert DateFacet("before", TODAY).as_dict() == {
            "kind": "date",
            "mode": "before",
            "value": TODAY,
        }
        assert TagsFacet(("a", "b")).as_dict() == {"kind": "tags", "values": ["a", "b"]}
