"""Calendar event publishing on behalf of a user."""

import logging
from datetime import timedelta
from typing import Any

from tasukun.core.config import settings
from tasukun.core.db_client import DBClient
from tasukun.core.errors import ValidationError
from tasukun.core.logging import log_with_user_context, span
from tasukun.domain.google import EventData, RemoteEvent
from tasukun.domain.task import as_utc
from tasukun.interface.google_calendar_client import GoogleCalendarClient
from tasukun.interface.google_oauth_client import GoogleOAuthClient
from tasukun.services import oauth_service, task_service


logger = logging.getLogger(__name__)


def build_event_body(event: EventData, *, timezone: str) -> dict[str, Any]:
    """Translate the internal event shape into a Calendar API request body."""
    return {
        "summary": event.summary,
        "description": event.description or "",
        "start": {"dateTime": event.start.isoformat(), "timeZone": timezone},
        "end": {"dateTime": event.end.isoformat(), "timeZone": timezone},
    }


async def create_event(
    *,
    db: DBClient,
    oauth_client: GoogleOAuthClient,
    calendar_client: GoogleCalendarClient,
    user_id: str,
    event: EventData,
) -> RemoteEvent:
    """Create an event in the user's primary calendar.

    Raises:
        TokenUnavailableError: If the user has no usable Google credential
        AuthRefreshError: If the expired token cannot be refreshed
        ProviderError: If Google rejects the event
    """
    with span("calendar_service.create_event"):
        access_token = await oauth_service.get_valid_access_token(db=db, oauth_client=oauth_client, user_id=user_id)
        body = build_event_body(event, timezone=settings.google_calendar_timezone)
        remote_event = await calendar_client.insert_event(access_token=access_token, body=body)
        log_with_user_context(logger, "info", "Calendar event created", user_id=user_id, event_id=remote_event.id)
        return remote_event


async def create_event_for_task(
    *,
    db: DBClient,
    oauth_client: GoogleOAuthClient,
    calendar_client: GoogleCalendarClient,
    user_id: str,
    task_id: str,
) -> RemoteEvent:
    """Publish a task's due date as a calendar event.

    Raises:
        RecordNotFoundError: If the task is not visible to the user
        ValidationError: If the task has no due date
    """
    task = await task_service.get_task(db=db, owner_id=user_id, task_id=task_id)
    if task.due_date is None:
        raise ValidationError("Task has no due date to schedule")

    start = as_utc(task.due_date)
    event = EventData(
        summary=task.title,
        description=task.description,
        start=start,
        end=start + timedelta(minutes=settings.google_task_event_duration_minutes),
    )
    return await create_event(
        db=db,
        oauth_client=oauth_client,
        calendar_client=calendar_client,
        user_id=user_id,
        event=event,
    )
