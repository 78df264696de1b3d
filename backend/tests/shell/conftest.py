"""Shared fixtures for shell tests."""

from unittest.mock import MagicMock, patch

import pytest

from hydratrack.core.goals import build_profile
from hydratrack.shell import mcp_server
from hydratrack.shell.firestore_client import HydrationFirestoreClient


USER_ID = "a" * 32


@pytest.fixture(autouse=True)
def reset_clients(monkeypatch):
    """Drop lazily created clients so each test gets fresh mocks."""
    monkeypatch.setattr(mcp_server, "_firestore_client", None)
    monkeypatch.setattr(mcp_server, "_auth_client", None)
    monkeypatch.delenv("HYDRATRACK_TIMEZONE", raising=False)


@pytest.fixture
def mock_firestore():
    """Mock the Firestore SDK client."""
    with patch("hydratrack.shell.firestore_client.firestore") as mock_fs:
        mock_client = MagicMock()
        mock_fs.Client.return_value = mock_client
        yield mock_client


@pytest.fixture
def mock_db(monkeypatch):
    """Replace the persistence client used by the tools."""
    db = MagicMock(spec=HydrationFirestoreClient)
    db.add_entry.return_value = True
    db.save_profile.return_value = True
    db.get_entries_range.return_value = []
    db.get_profile.return_value = None
    monkeypatch.setattr(mcp_server, "get_firestore_client", lambda: db)
    return db


@pytest.fixture
def authenticated():
    """Run as USER_ID, as the auth middleware would."""
    token = mcp_server.current_user_id.set(USER_ID)
    yield USER_ID
    mcp_server.current_user_id.reset(token)


@pytest.fixture
def profile():
    return build_profile(60, "sedentary", "cool")
