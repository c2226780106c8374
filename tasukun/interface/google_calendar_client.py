"""Google Calendar API client."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from tasukun.core.config import constants
from tasukun.core.errors import ProviderError
from tasukun.domain.google import RemoteEvent
from tasukun.interface.google_oauth_client import safe_google_error_message


logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """Issues authenticated requests against the Calendar v3 API."""

    def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client

    async def _post_json(self, url: str, *, body: dict[str, Any], access_token: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        if self._http_client is not None:
            return await self._http_client.post(url, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=constants.GOOGLE_API_TIMEOUT_SECONDS) as client:
            return await client.post(url, json=body, headers=headers)

    async def insert_event(self, *, access_token: str, body: dict[str, Any], calendar_id: str = "primary") -> RemoteEvent:
        """Insert one event. Single attempt, no retry.

        Raises:
            ProviderError: If the request fails or Google rejects the payload
        """
        url = f"{constants.GOOGLE_CALENDAR_API_BASE_URL}/calendars/{quote(calendar_id, safe='')}/events"
        try:
            response = await self._post_json(url, body=body, access_token=access_token)
        except httpx.HTTPError as e:
            logger.error("calendar_insert_request_failed", extra={"error": str(e)})
            raise ProviderError(f"Google Calendar request failed: {e}") from e

        if not response.is_success:
            message = safe_google_error_message(response)
            logger.warning(
                "calendar_insert_rejected",
                extra={"status_code": response.status_code, "error": message},
            )
            raise ProviderError(
                f"Google Calendar API request failed ({response.status_code}): {message}",
                provider_status=response.status_code,
            )

        try:
            return RemoteEvent.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise ProviderError("Google Calendar API returned an unexpected event payload") from e


def get_google_calendar_client() -> GoogleCalendarClient:
    """FastAPI dependency for the calendar client."""
    return GoogleCalendarClient()
