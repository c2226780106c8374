"""Task HTTP API."""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from tasukun.core.db_client import DBClient, get_db_client
from tasukun.domain.create_models import TaskCreate
from tasukun.domain.google import RemoteEvent
from tasukun.domain.task import Task, TaskAction, TaskFilters
from tasukun.domain.update_models import TaskUpdate
from tasukun.domain.user import SessionUser
from tasukun.interface.auth import require_user
from tasukun.interface.google_calendar_client import GoogleCalendarClient, get_google_calendar_client
from tasukun.interface.google_oauth_client import GoogleOAuthClient, get_google_oauth_client
from tasukun.models.service_models import TaskListing
from tasukun.services import calendar_service, notification_service, task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

CurrentUser = Annotated[SessionUser, Depends(require_user)]
Store = Annotated[DBClient, Depends(get_db_client)]


@router.get("", response_model=TaskListing, response_model_by_alias=True)
async def list_tasks(
    user: CurrentUser,
    db: Store,
    search: Annotated[str | None, Query(description="Case-insensitive match on title or description")] = None,
    statuses: Annotated[str | None, Query(description="Comma-separated statuses")] = None,
    due_filters: Annotated[str | None, Query(description="Comma-separated due buckets: overdue, due_soon")] = None,
    priorities: Annotated[str | None, Query(description="Comma-separated priorities")] = None,
) -> TaskListing:
    """List the caller's tasks with status counts over the filtered set."""
    filters = TaskFilters.from_query_params(
        search=search,
        statuses=statuses,
        due_filters=due_filters,
        priorities=priorities,
    )
    return await task_service.list_tasks(db=db, owner_id=user.user_id, filters=filters)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    user: CurrentUser,
    db: Store,
    background_tasks: BackgroundTasks,
) -> Task:
    """Create a task and announce it on Slack after the response."""
    task = await task_service.create_task(db=db, owner_id=user.user_id, payload=payload)
    background_tasks.add_task(
        notification_service.notify_task_event,
        action=TaskAction.CREATED,
        task=task,
        user_email=user.email,
    )
    return task


@router.get("/{task_id}")
async def get_task(task_id: str, user: CurrentUser, db: Store) -> Task:
    """Fetch one task."""
    return await task_service.get_task(db=db, owner_id=user.user_id, task_id=task_id)


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    user: CurrentUser,
    db: Store,
    background_tasks: BackgroundTasks,
) -> Task:
    """Partially update a task and announce the change on Slack after the response."""
    task = await task_service.update_task(db=db, owner_id=user.user_id, task_id=task_id, payload=payload)
    background_tasks.add_task(
        notification_service.notify_task_event,
        action=TaskAction.UPDATED,
        task=task,
        user_email=user.email,
    )
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, user: CurrentUser, db: Store) -> Response:
    """Delete a task."""
    await task_service.delete_task(db=db, owner_id=user.user_id, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/calendar-event", status_code=status.HTTP_201_CREATED, response_model_by_alias=True)
async def create_task_calendar_event(
    task_id: str,
    user: CurrentUser,
    db: Store,
    oauth_client: Annotated[GoogleOAuthClient, Depends(get_google_oauth_client)],
    calendar_client: Annotated[GoogleCalendarClient, Depends(get_google_calendar_client)],
) -> RemoteEvent:
    """Publish the task's due date to the caller's Google Calendar."""
    return await calendar_service.create_event_for_task(
        db=db,
        oauth_client=oauth_client,
        calendar_client=calendar_client,
        user_id=user.user_id,
        task_id=task_id,
    )
