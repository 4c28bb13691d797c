"""
Shared fixtures for console tests.

The Flask app is imported inside fixtures so the test environment is in
place before admin_console.app reads its configuration.
"""

import os

import pytest

from admin_console.models import UserRecord
from admin_console.store import reset_workspace_store

# Test environment, set before admin_console.app reads its configuration
os.environ.setdefault("FLASK_SECRET_KEY", "test-secret-key")
os.environ.setdefault("FLASK_ENV", "testing")
os.environ.setdefault("USERS_URL", "https://example.com/members.json")

ROLES = ["admin", "member", "member", "member", "moderator"]


def build_users(count):
    """Build `count` records with ids "1".."count"."""
    return [
        UserRecord(
            id=str(index),
            name=f"User {index}",
            email=f"user{index}@example.com",
            role=ROLES[index % len(ROLES)],
        )
        for index in range(1, count + 1)
    ]


@pytest.fixture(autouse=True)
def fresh_store():
    """Every test starts without any workspaces."""
    reset_workspace_store()
    yield
    reset_workspace_store()


@pytest.fixture
def app():
    """Flask app fixture with test configuration."""
    from admin_console.app import app
    app.config["TESTING"] = True
    return app


@pytest.fixture
def mock_fetch(mocker):
    """Loader stub returning 25 users unless a test overrides return_value."""
    return mocker.patch("admin_console.app.fetch_users", return_value=build_users(25))


@pytest.fixture
def client(app, mock_fetch):
    """Test client whose session already has a loaded workspace."""
    with app.test_client() as client:
        client.get("/")
        yield client
