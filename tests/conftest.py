"""Test configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from mirsui.core.config import Settings
from mirsui.core.context import AppContext
from mirsui.main import create_app
from mocks import MockBackend


def make_settings(**overrides) -> Settings:
    values = {
        "SUPABASE_URL": "http://supabase.test",
        "SUPABASE_KEY": "test-anon-key",
        "ALLOWED_ORIGINS": "http://localhost:3000",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return make_settings()


@pytest.fixture
def mock_backend():
    """Fresh in-memory backend for each test."""
    return MockBackend()


@pytest.fixture
def context(settings, mock_backend):
    return AppContext(settings=settings, backend=mock_backend)


@pytest.fixture
def client(context):
    """Create a test client wired to the mock backend."""
    return TestClient(create_app(context))


@pytest.fixture
def test_user(mock_backend):
    """Registered user with an active session."""
    return mock_backend.create_user("alice@example.com", "secret123", "alice", points=42, rating=7.5)


@pytest.fixture
def other_user(mock_backend):
    return mock_backend.create_user("bob@example.com", "hunter22", "bob", points=3, rating=9.0)


@pytest.fixture
def auth_headers(test_user):
    """Get auth headers with test token."""
    return {"Authorization": f"Bearer {test_user['access_token']}"}


@pytest.fixture
def other_auth_headers(other_user):
    return {"Authorization": f"Bearer {other_user['access_token']}"}
