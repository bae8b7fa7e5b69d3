"""
Pytest configuration and fixtures for test suite.
"""

import logging
import os
import pytest
import structlog

# Set test environment variables before importing the app
os.environ["APP_ENV"] = "test"
os.environ["LOG_FORMAT"] = "console"
os.environ["LOG_LEVEL"] = "warning"

from fastapi.testclient import TestClient
from todo_api.config import Settings
from todo_api.main import create_app
from todo_api.models.database import Store


@pytest.fixture
def db_path(tmp_path):
    """Path of a store file inside a per-test temporary directory."""
    return str(tmp_path / "todos.db")


@pytest.fixture
def test_settings(db_path):
    """Settings pointing the application at the temporary store."""
    return Settings(_env_file=None, db_path=db_path, app_env="test", store_busy_timeout=0.2)


@pytest.fixture
def store(db_path):
    """An open store, closed after the test."""
    opened = Store.open(db_path, busy_timeout=0.2)
    yield opened
    opened.close()


@pytest.fixture
def client(test_settings):
    """FastAPI test client with the lifespan (and therefore the store) running."""
    with TestClient(create_app(test_settings)) as test_client:
        yield test_client


@pytest.fixture
def make_todos(client):
    """Create todos through the API and return their response bodies."""
    def _make(*titles):
        created = []
        for title in titles:
            response = client.post("/todos", json={"title": title, "completed": False})
            assert response.status_code == 201
            created.append(response.json())
        return created
    return _make


@pytest.fixture
def info_logs():
    """Let info-level events through the filtering logger for one test."""
    previous = structlog.get_config()
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.INFO))
    yield
    structlog.configure(**previous)
