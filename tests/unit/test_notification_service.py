"""Unit tests for notification_service module."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from tasukun.core.errors import NotificationError
from tasukun.domain.task import Task, TaskAction
from tasukun.services import notification_service


@pytest.fixture
def sample_task():
    """A task as returned after a mutation."""
    now = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)
    return Task(
        id="t1",
        owner_id="u1",
        title="Write report",
        status="in_progress",
        priority="high",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def mock_slack_sender(monkeypatch):
    """Mock the slack_sender.send_webhook_message function."""
    mock_send = AsyncMock(return_value=200)
    monkeypatch.setattr("tasukun.services.notification_service.slack_sender.send_webhook_message", mock_send)
    return mock_send


@pytest.fixture
def webhook_configured(monkeypatch):
    """Configure a Slack webhook URL."""
    monkeypatch.setattr(notification_service.settings, "slack_webhook_url", "https://hooks.slack.test/T/B/X")


class TestNotifyTaskEvent:
    """Test task event notifications."""

    async def test_sends_message(self, webhook_configured, mock_slack_sender, sample_task):
        """The message names the action, the actor and the task."""
        result = await notification_service.notify_task_event(
            action=TaskAction.CREATED, task=sample_task, user_email="alice@example.com"
        )

        assert result.success is True
        assert result.status_code == 200
        kwargs = mock_slack_sender.await_args.kwargs
        assert kwargs["webhook_url"] == "https://hooks.slack.test/T/B/X"
        assert "created" in kwargs["text"]
        assert "alice@example.com" in kwargs["text"]
        assert "Write report" in kwargs["text"]

    async def test_unconfigured_webhook_skips(self, mock_slack_sender, sample_task):
        """Without a webhook nothing is sent."""
        result = await notification_service.notify_task_event(
            action=TaskAction.UPDATED, task=sample_task, user_email=None
        )

        assert result.success is False
        mock_slack_sender.assert_not_called()

    async def test_sender_failure_is_absorbed(self, webhook_configured, mock_slack_sender, sample_task):
        """Slack errors never escape the dispatcher."""
        mock_slack_sender.side_effect = NotificationError("Slack webhook returned 500")

        result = await notification_service.notify_task_event(
            action=TaskAction.UPDATED, task=sample_task, user_email="alice@example.com"
        )

        assert result.success is False
        assert "500" in result.error

    async def test_unexpected_failure_is_absorbed(self, webhook_configured, mock_slack_sender, sample_task):
        """Even unexpected errors are logged and swallowed."""
        mock_slack_sender.side_effect = RuntimeError("boom")

        result = await notification_service.notify_task_event(
            action=TaskAction.CREATED, task=sample_task, user_email="alice@example.com"
        )

        assert result.success is False
        assert result.error == "boom"


def test_build_task_message_without_email(sample_task):
    """Missing emails are reported as an unknown user."""
    text = notification_service.build_task_message(action=TaskAction.UPDATED, task=sample_task, user_email=None)

    assert text == "Task updated by unknown user: Write report [status: in_progress, priority: high]"
