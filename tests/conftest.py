"""Pytest configuration and shared fixtures."""

import pytest

from tasukun.core.config import settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from real credentials and the developer database."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "tasukun-test.db"))
    monkeypatch.setattr(settings, "slack_webhook_url", None)
    monkeypatch.setattr(settings, "google_client_id", "test-client-id")
    monkeypatch.setattr(settings, "google_client_secret", "test-client-secret")
    monkeypatch.setattr(settings, "google_redirect_uri", "http://testserver/google/callback")
    monkeypatch.setattr(settings, "google_token_expiry_margin_seconds", 0)
    return settings
