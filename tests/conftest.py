import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from task_api.db import SQLiteRepository  # noqa: E402
from task_api.main import create_app  # noqa: E402
from task_api.repositories import InMemoryRepository  # noqa: E402


def days_from_today(days: int) -> str:
    """Date-only ISO string `days` away from today (UTC)."""
    return (datetime.now(timezone.utc) + timedelta(days=days)).date().isoformat()


def canonical(day: str) -> str:
    """What the API returns for a date-only due date."""
    return f"{day}T00:00:00.000Z"


@pytest.fixture
def sqlite_repo(tmp_path):
    return SQLiteRepository(str(tmp_path / "tasks.db"))


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "tasks.db"))
    return InMemoryRepository()


@pytest.fixture
def client(repo):
    return TestClient(create_app(repository=repo))
