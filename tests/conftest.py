"""Pytest configuration and shared fixtures."""

import logging
from datetime import datetime
from typing import Any

import pytest
import structlog

from src.scheduling.config import reset_config
from src.scheduling.models import SessionRecord


@pytest.fixture(autouse=True)
def scheduling_env(monkeypatch):
    """Pin settings so tests never depend on the host environment or a .env file."""
    monkeypatch.setenv("SCHEDULING_TIMEZONE", "UTC")
    monkeypatch.setenv("SCHEDULING_FIRST_DAY_OF_WEEK", "sunday")
    monkeypatch.setenv("SCHEDULING_DEFAULT_VIEW_MODE", "week")
    monkeypatch.setenv("SCHEDULING_SLOT_START", "08:00")
    monkeypatch.setenv("SCHEDULING_SLOT_END", "20:00")
    monkeypatch.setenv("SCHEDULING_SLOT_INTERVAL_MINUTES", "60")
    reset_config()
    yield
    reset_config()


@pytest.fixture
def restore_logging():
    """Undo setup_logging() so later tests see structlog defaults."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)
    for name in ("urllib3", "requests"):
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture
def make_session():
    """Factory for SessionRecord with sensible defaults."""

    def _make(
        session_id: int,
        start: str,
        end: str,
        **overrides: Any,
    ) -> SessionRecord:
        data: dict[str, Any] = {
            "id": session_id,
            "child_id": 1,
            "subject_id": 1,
            "teacher_id": 10,
            "start_time": datetime.fromisoformat(start),
            "end_time": datetime.fromisoformat(end),
            "status": "scheduled",
            "child_name": "Amina",
            "teacher_name": "Mr Yusuf",
            "subject_name": "Mathematics",
        }
        data.update(overrides)
        return SessionRecord.model_validate(data)

    return _make


@pytest.fixture
def api_session_payload() -> dict[str, Any]:
    """A session as the platform API serializes it (relations nested)."""
    return {
        "id": 42,
        "teacher_id": 7,
        "children_id": 3,
        "subject_id": 5,
        "start_time": "2024-03-15T09:30:00.000000Z",
        "end_time": "2024-03-15T10:30:00.000000Z",
        "status": "completed",
        "attended": 1,
        "performance_score": "85.50",
        "notes": "Worked on fractions",
        "created_at": "2024-03-01T12:00:00.000000Z",
        "children": {"id": 3, "name": "Bilal Haddad"},
        "teacher": {"id": 7, "name": "Sara Okafor"},
        "subject": {"id": 5, "name": "Mathematics"},
    }
