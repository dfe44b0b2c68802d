import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from pomodoro_api.db import SQLiteRepository  # noqa: E402
from pomodoro_api.main import app  # noqa: E402
from pomodoro_api.repositories import InMemoryRepository, get_repository  # noqa: E402


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    """A fresh, empty repository for each storage backend."""
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "pomodoro.db"))
    return InMemoryRepository()


@pytest.fixture()
def client(repo):
    app.dependency_overrides[get_repository] = lambda: repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
