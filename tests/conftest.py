from __future__ import annotations

import copy
from pathlib import Path

import pytest

import template_studio.data.db as app_db
from template_studio.data.db import init_db
from template_studio.services.users import create_user

BASE_STRUCTURE = {
    "sections": [
        {
            "id": "personal",
            "name": "Personal Info",
            "type": "personal_info",
            "isRequired": True,
            "order": 0,
        },
        {
            "id": "summary",
            "name": "Summary",
            "type": "summary",
            "isRequired": False,
            "order": 1,
        },
        {
            "id": "experience",
            "name": "Experience",
            "type": "experience",
            "isRequired": True,
            "order": 2,
            "maxItems": 10,
        },
    ],
    "layout": {"columns": 1, "headerStyle": "standard"},
}

BASE_DESIGN = {
    "colors": {
        "primary": "#333333",
        "secondary": "#666666",
        "text": "#111111",
        "background": "#FFFFFF",
    },
    "typography": {
        "fontFamily": "Inter",
        "fontSize": 11,
        "lineHeight": 1.4,
        "headingSizes": {"h1": 24, "h2": 16, "h3": 13},
    },
    "spacing": {"sectionSpacing": 16, "itemSpacing": 8},
    "borders": {
        "sectionDividers": True,
        "headerUnderline": False,
        "style": "solid",
        "width": 1,
    },
}


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every test against its own temporary SQLite database."""
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path.as_posix()}")
    app_db.reset_engine()
    init_db()
    yield
    # Dispose engine to release connections
    app_db.reset_engine()


@pytest.fixture
def admin_user(tmp_db) -> dict:
    return create_user("Avery Admin", "admin@example.com", is_admin=True)


@pytest.fixture
def regular_user(tmp_db) -> dict:
    return create_user("Riley User", "riley@example.com")


@pytest.fixture
def other_user(tmp_db) -> dict:
    return create_user("Morgan Other", "morgan@example.com")


@pytest.fixture
def structure() -> dict:
    return copy.deepcopy(BASE_STRUCTURE)


@pytest.fixture
def design() -> dict:
    return copy.deepcopy(BASE_DESIGN)


@pytest.fixture
def template_payload(structure: dict, design: dict) -> dict:
    """A complete root template."""
    return {
        "name": "Base Resume",
        "description": "Clean single-column resume",
        "category": "professional",
        "document_type": "resume",
        "template_structure": copy.deepcopy(structure),
        "design_config": copy.deepcopy(design),
        "sample_content": {"summary": "Seasoned engineer."},
        "tags": ["ats", "classic"],
    }
