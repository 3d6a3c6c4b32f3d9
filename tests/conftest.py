"""Shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from api import app
from api.resources import get_manager
from resources import ResourceManager
from resources.memory import MemoryStore

@pytest.fixture
def memory_store():
    """Create an empty in-memory store."""
    return MemoryStore()

@pytest.fixture
def manager(memory_store):
    """Create a ResourceManager over the in-memory store."""
    return ResourceManager(memory_store)

@pytest.fixture
def client(manager):
    """Create a test client whose endpoints use the in-memory store."""
    app.dependency_overrides[get_manager] = lambda: manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
