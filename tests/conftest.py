"""
Pytest configuration.

Adds the project root to the Python path so tests can import the api,
domain, repositories, services and scripts modules, and provides fixtures
that swap the Supabase-backed repository for an in-memory store.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.helpers.fake_store import FakeStore  # noqa: E402


@pytest.fixture
def fake_store(monkeypatch):
    """In-memory sales table patched over repositories.sale_repository."""
    return FakeStore().install(monkeypatch)


@pytest.fixture
def api_client(fake_store):
    """FastAPI TestClient backed by the in-memory store."""
    from fastapi.testclient import TestClient

    from api.main import app

    return TestClient(app)
