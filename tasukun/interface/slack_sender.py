"""Slack incoming-webhook sender using httpx."""

import logging

import httpx

from tasukun.core.config import constants
from tasukun.core.errors import NotificationError


logger = logging.getLogger(__name__)


async def send_webhook_message(
    *,
    webhook_url: str,
    text: str,
    http_client: httpx.AsyncClient | None = None,
) -> int:
    """Post a plain-text message to a Slack incoming webhook. Single attempt, no retry.

    Returns:
        HTTP status code returned by Slack

    Raises:
        NotificationError: If the request fails or Slack answers with a non-2xx status
    """
    payload = {"text": text}
    try:
        if http_client is not None:
            response = await http_client.post(webhook_url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=constants.NOTIFICATION_TIMEOUT_SECONDS) as client:
                response = await client.post(webhook_url, json=payload)
    except httpx.HTTPError as e:
        raise NotificationError(f"Slack webhook request failed: {e!s}") from e

    if not response.is_success:
        raise NotificationError(f"Slack webhook returned {response.status_code}: {response.text[:200]}")

    return response.status_code
