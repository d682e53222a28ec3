"""
Shared test fixtures for notion-cli tests.
Patches config module to avoid loading a real .env or token and making API calls.
"""

import os
import sys

import pytest

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from notion_cli.schema import CollectionSchema  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state.
    Prevents tests from reading the real .env or sharing runtime flags."""
    from notion_cli import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "TOKEN", "secret_fake-token")
    monkeypatch.setattr(config, "PATTERNS_PATH", "")
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
    monkeypatch.setattr(config, "HTTP_MAX_RETRIES", 0)
    monkeypatch.setattr(config, "RUNTIME_DRY_RUN", False)
    monkeypatch.setattr(config, "RUNTIME_QUIET", False)
    monkeypatch.setattr(config, "RUNTIME_VERBOSE", False)


DB_ID = "0123456789abcdef0123456789abcdef"
PAGE_ID = "fedcba9876543210fedcba9876543210"


def _opts(*names):
    return {
        "options": [
            {"id": f"opt-{i}", "name": n, "color": "default"} for i, n in enumerate(names)
        ]
    }


def tasks_database():
    """A GET /databases/{id} response for a typical task tracker."""
    return {
        "object": "database",
        "id": DB_ID,
        "title": [{"plain_text": "Tasks"}],
        "properties": {
            "Name": {"id": "title", "type": "title", "title": {}},
            "Status": {
                "id": "s1",
                "type": "status",
                "status": _opts("Not started", "In progress", "Done"),
            },
            "Priority": {"id": "p1", "type": "select", "select": _opts("High", "Medium", "Low")},
            "Tags": {
                "id": "t1",
                "type": "multi_select",
                "multi_select": _opts("bug", "ui", "backend"),
            },
            "Assignee": {"id": "a1", "type": "people", "people": {}},
            "Due Date": {"id": "d1", "type": "date", "date": {}},
            "Points": {"id": "n1", "type": "number", "number": {"format": "number"}},
            "Done?": {"id": "c1", "type": "checkbox", "checkbox": {}},
            "Notes": {"id": "r1", "type": "rich_text", "rich_text": {}},
        },
    }


@pytest.fixture
def tasks_schema():
    return CollectionSchema.from_api(tasks_database())


def make_page(page_id, title, **extra):
    page = {
        "object": "page",
        "id": page_id,
        "url": f"https://www.notion.so/{page_id}",
        "properties": {"Name": {"type": "title", "title": [{"plain_text": title}]}},
    }
    page.update(extra)
    return page
