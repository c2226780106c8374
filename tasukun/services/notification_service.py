"""Notification service for posting task activity to Slack."""

import logging

import httpx

from tasukun.core.config import settings
from tasukun.core.logging import span
from tasukun.domain.task import Task, TaskAction
from tasukun.interface import slack_sender
from tasukun.models.service_models import NotificationResult


logger = logging.getLogger(__name__)


def build_task_message(*, action: TaskAction, task: Task, user_email: str | None) -> str:
    """One plain-text line summarising a task mutation."""
    who = user_email or "unknown user"
    return f"Task {action.value} by {who}: {task.title} [status: {task.status.value}, priority: {task.priority.value}]"


async def notify_task_event(
    *,
    action: TaskAction,
    task: Task,
    user_email: str | None,
    http_client: httpx.AsyncClient | None = None,
) -> NotificationResult:
    """Post a task mutation to Slack without ever raising.

    Runs after the mutation has committed; failures are logged and reported in the
    result only.

    Args:
        action: Mutation kind
        task: Task after the mutation
        user_email: Email of the acting user
        http_client: Optional client to send with

    Returns:
        NotificationResult describing the attempt
    """
    with span("notification_service.notify_task_event"):
        webhook_url = settings.slack_webhook_url
        if not webhook_url:
            logger.debug("Slack webhook not configured, skipping %s notification for task %s", action, task.id)
            return NotificationResult(success=False, error="Slack webhook not configured")

        text = build_task_message(action=action, task=task, user_email=user_email)
        try:
            status_code = await slack_sender.send_webhook_message(
                webhook_url=webhook_url,
                text=text,
                http_client=http_client,
            )
        except Exception as e:
            logger.exception("Slack notification failed for task %s (%s)", task.id, action)
            # Don't raise - notification failure shouldn't fail the mutation
            return NotificationResult(success=False, error=str(e))

        logger.info("Slack notification sent for task %s (%s)", task.id, action)
        return NotificationResult(success=True, status_code=status_code)
