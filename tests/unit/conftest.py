"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tasukun.core.db_client import get_db_client
from tasukun.domain.google import RemoteEvent, TokenSet
from tasukun.domain.user import SessionUser
from tasukun.interface.auth import create_session_token
from tasukun.interface.google_calendar_client import GoogleCalendarClient, get_google_calendar_client
from tasukun.interface.google_oauth_client import GoogleOAuthClient, get_google_oauth_client
from tasukun.main import app
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def session_user():
    """The authenticated caller."""
    return SessionUser(user_id="user-alice", email="alice@example.com")


@pytest.fixture
def other_user():
    """A second user whose tasks must stay invisible to the caller."""
    return SessionUser(user_id="user-bob", email="bob@example.com")


@pytest.fixture
def auth_headers(session_user):
    """Bearer header carrying a valid session for session_user."""
    return {"Authorization": f"Bearer {create_session_token(session_user)}"}


@pytest.fixture
def mock_oauth_client():
    """GoogleOAuthClient double with canned token responses."""
    client = MagicMock(spec=GoogleOAuthClient)
    client.generate_authorization_url.return_value = "https://accounts.google.com/o/oauth2/v2/auth?client_id=test"
    client.exchange_code = AsyncMock(
        return_value=TokenSet(
            access_token="access-initial",
            refresh_token="refresh-initial",
            expiry_date=datetime.now(UTC) + timedelta(hours=1),
        )
    )
    client.refresh = AsyncMock(
        return_value=TokenSet(
            access_token="access-refreshed",
            refresh_token=None,
            expiry_date=datetime.now(UTC) + timedelta(hours=1),
        )
    )
    return client


@pytest.fixture
def mock_calendar_client():
    """GoogleCalendarClient double that accepts every event."""
    client = MagicMock(spec=GoogleCalendarClient)
    client.insert_event = AsyncMock(
        return_value=RemoteEvent(id="evt_123", status="confirmed", summary="Event", html_link="https://calendar/evt_123")
    )
    return client


@pytest.fixture
def mock_notify(monkeypatch):
    """Replace the Slack dispatcher so no HTTP call is attempted."""
    mock = AsyncMock()
    monkeypatch.setattr("tasukun.services.notification_service.notify_task_event", mock)
    return mock


@pytest.fixture
def client(in_memory_db, mock_oauth_client, mock_calendar_client, mock_notify):
    """TestClient with the store and Google clients swapped for doubles."""
    app.dependency_overrides[get_db_client] = lambda: in_memory_db
    app.dependency_overrides[get_google_oauth_client] = lambda: mock_oauth_client
    app.dependency_overrides[get_google_calendar_client] = lambda: mock_calendar_client
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
