"""Tests for compiler/patterns.py: pattern packs and JSON language packs."""

import json

import pytest

from notion_cli.compiler import (
    DATE_MODES,
    DEFAULT_PATTERN_PACK,
    PatternRule,
    load_pattern_pack,
    pattern_pack_from_dict,
)
from notion_cli.exceptions import CliError


class TestPatternRule:
    def test_substring_trigger(self):
        assert PatternRule("done", ("done",)).matches("all done now")

    def test_tuple_trigger_needs_all_parts(self):
        rule = PatternRule("created_today", (("cread", "hoy"),))
        assert rule.matches("tareas creadas hoy")
        assert not rule.matches("tareas creadas ayer")


class TestDefaultPack:
    def test_bilingual(self):
        assert DEFAULT_PATTERN_PACK.languages == ("en", "es")

    def test_status_declaration_order(self):
        values = [rule.value for rule in DEFAULT_PATTERN_PACK.status]
        assert values[:3] == ["done", "in progress", "todo"]

    def test_today_declared_before_modified_today(self):
        modes = [rule.value for rule in DEFAULT_PATTERN_PACK.date]
        assert modes.index("equals") < modes.index("last_edited_today")

    def test_hints(self):
        assert "estado" in DEFAULT_PATTERN_PACK.hints("status")
        assert DEFAULT_PATTERN_PACK.hints("unknown") == ()

    def test_tag_regex(self):
        match = DEFAULT_PATTERN_PACK.tag_regex.search('bugs tagged "ui, backend"')
        assert match.group(1) == "ui, backend"


class TestPatternPackFromDict:
    def test_partial_pack(self):
        pack = pattern_pack_from_dict(
            {"version": "fr.1", "languages": ["fr"], "status": {"done": ["Fini", "terminé"]}}
        )
        assert pack.version == "fr.1"
        assert pack.status[0].triggers == ("fini", "terminé")
        assert pack.date == ()

    def test_list_trigger_becomes_tuple(self):
        pack = pattern_pack_from_dict({"date": {"created_today": [["créé", "aujourd"]]}})
        assert pack.date[0].triggers == (("créé", "aujourd"),)

    def test_unknown_date_mode(self):
        with pytest.raises(CliError, match="Unknown date mode 'tomorrow'"):
            pattern_pack_from_dict({"date": {"tomorrow": ["demain"]}})

    def test_default_date_rules_use_known_modes(self):
        assert tuple(rule.value for rule in DEFAULT_PATTERN_PACK.date) == DATE_MODES

    def test_section_must_be_object(self):
        with pytest.raises(CliError, match="section 'status'"):
            pattern_pack_from_dict({"status": ["done"]})

    def test_not_an_object(self):
        with pytest.raises(CliError):
            pattern_pack_from_dict(["x"])


class TestMerged:
    def test_appends_triggers_to_existing_rule(self):
        extra = pattern_pack_from_dict({"status": {"done": ["fini"]}})
        merged = DEFAULT_PATTERN_PACK.merged(extra)
        done = merged.status[0]
        assert done.value == "done"
        assert done.triggers[-1] == "fini"
        assert "completed" in done.triggers

    def test_new_rule_goes_last(self):
        extra = pattern_pack_from_dict({"status": {"cancelled": ["annulé"]}})
        merged = DEFAULT_PATTERN_PACK.merged(extra)
        assert merged.status[-1].value == "cancelled"
        assert len(merged.status) == len(DEFAULT_PATTERN_PACK.status) + 1

    def test_version_and_hints(self):
        extra = pattern_pack_from_dict(
            {"version": "fr.1", "property_hints": {"status": ["statut"]}}
        )
        merged = DEFAULT_PATTERN_PACK.merged(extra)
        assert merged.version == "en-es.1+fr.1"
        assert merged.hints("status")[-1] == "statut"

    def test_base_pack_unchanged(self):
        DEFAULT_PATTERN_PACK.merged(pattern_pack_from_dict({"status": {"done": ["fini"]}}))
        assert "fini" not in DEFAULT_PATTERN_PACK.status[0].triggers


class TestLoadPatternPack:
    def test_loads_and_merges(self, tmp_path):
        path = tmp_path / "fr.json"
        path.write_text(
            json.dumps({"version": "fr.1", "assignee_empty": ["non assigné"]}), encoding="utf-8"
        )
        pack = load_pattern_pack(str(path))
        assert "non assigné" in pack.assignee_empty
        assert "unassigned" in pack.assignee_empty

    def test_missing_file(self, tmp_path):
        with pytest.raises(CliError, match="Cannot read pattern pack"):
            load_pattern_pack(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(CliError, match="Invalid JSON in pattern pack"):
            load_pattern_pack(str(path))
