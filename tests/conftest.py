"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time by some modules
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("MOMENTUM_ENV", "test")

USER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["MOMENTUM_ENV"] = "test"
    os.environ["AI_PROVIDER"] = "mock"
    os.environ.pop("ANTHROPIC_API_KEY", None)
    os.environ.pop("OPENAI_API_KEY", None)

    from momentum.core.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def auth_context():
    from momentum.core.auth_middleware import AuthContext

    return AuthContext(user_id=USER_ID, token="test-token", email="writer@example.com")


@pytest.fixture
def client(auth_context):
    """TestClient with authentication satisfied by a fixed user."""
    from momentum.core.auth_middleware import require_auth
    from momentum.main import app

    app.dependency_overrides[require_auth] = lambda: auth_context
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
