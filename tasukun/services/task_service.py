"""Task service: CRUD and the filtered, status-counted listing."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from tasukun.core.config import Constants
from tasukun.core.db_client import DBClient, sanitize_param
from tasukun.core.errors import RecordNotFoundError, ValidationError
from tasukun.core.logging import log_with_user_context, span
from tasukun.domain.create_models import TaskCreate
from tasukun.domain.task import DueBucket, Task, TaskFilters, TaskStatus, as_utc
from tasukun.domain.update_models import TaskUpdate
from tasukun.models.service_models import StatusCounts, TaskListing


logger = logging.getLogger(__name__)

COLLECTION = Constants.TASKS_COLLECTION


def _timestamp(now: datetime | None = None) -> str:
    return as_utc(now or datetime.now(UTC)).isoformat(timespec="microseconds")


def _serialize_due_date(due_date: datetime | None) -> str | None:
    return as_utc(due_date).isoformat(timespec="microseconds") if due_date else None


def _to_task(record: dict[str, Any]) -> Task:
    return Task.model_validate(record)


def build_task_filter_query(*, owner_id: str, filters: TaskFilters) -> str:
    """Build the store filter for everything except due buckets.

    Args:
        owner_id: Owner whose tasks are listed
        filters: Request filters

    Returns:
        Filter expression for the store
    """
    clauses = [f'owner_id = "{sanitize_param(owner_id)}"']

    if filters.search:
        term = sanitize_param(filters.search)
        clauses.append(f'(title ~ "{term}" || description ~ "{term}")')

    if filters.statuses:
        options = " || ".join(f'status = "{status.value}"' for status in sorted(filters.statuses))
        clauses.append(f"({options})")

    if filters.priorities:
        options = " || ".join(f'priority = "{priority.value}"' for priority in sorted(filters.priorities))
        clauses.append(f"({options})")

    return " && ".join(clauses)


def matches_due_buckets(task: Task, buckets: Iterable[DueBucket], *, now: datetime) -> bool:
    """Check a task against the requested due buckets (OR semantics).

    A task without a due date never matches. No buckets means no restriction.
    """
    requested = set(buckets)
    if not requested:
        return True
    if task.due_date is None:
        return False

    due = as_utc(task.due_date)
    current = as_utc(now)

    if DueBucket.OVERDUE in requested and due < current:
        return True
    return DueBucket.DUE_SOON in requested and current <= due <= current + timedelta(days=Constants.DUE_SOON_DAYS)


def count_statuses(tasks: Iterable[Task]) -> StatusCounts:
    """Count tasks per status."""
    counts = StatusCounts()
    for task in tasks:
        counts.total += 1
        match task.status:
            case TaskStatus.TODO:
                counts.todo += 1
            case TaskStatus.IN_PROGRESS:
                counts.in_progress += 1
            case TaskStatus.DONE:
                counts.done += 1
    return counts


async def list_tasks(
    *,
    db: DBClient,
    owner_id: str,
    filters: TaskFilters,
    now: datetime | None = None,
) -> TaskListing:
    """List an owner's tasks, newest first, with counts over the same filtered set.

    Search, status and priority filters run in the store; due buckets are applied
    afterwards over the fetched rows.

    Args:
        db: Store client
        owner_id: Owner whose tasks are listed
        filters: Request filters
        now: Reference instant for due buckets (defaults to current time)

    Returns:
        TaskListing whose status counts describe exactly the returned tasks

    Raises:
        DatabaseError: If the store rejects the query
    """
    with span("task_service.list_tasks"):
        filter_query = build_task_filter_query(owner_id=owner_id, filters=filters)
        records = await db.list_all_records(collection=COLLECTION, filter_query=filter_query, sort="-created_at")
        tasks = [_to_task(record) for record in records]

        if filters.due_buckets:
            reference = now or datetime.now(UTC)
            tasks = [task for task in tasks if matches_due_buckets(task, filters.due_buckets, now=reference)]

        status_counts = count_statuses(tasks)
        logger.debug(
            "Listed %d tasks for owner=%s (fetched %d)",
            len(tasks),
            owner_id,
            len(records),
        )
        return TaskListing(tasks=tasks, status_counts=status_counts)


async def create_task(*, db: DBClient, owner_id: str, payload: TaskCreate, now: datetime | None = None) -> Task:
    """Create a task owned by `owner_id`.

    Raises:
        DatabaseError: If the store rejects the record
    """
    with span("task_service.create_task"):
        timestamp = _timestamp(now)
        data = {
            "owner_id": owner_id,
            "title": payload.title,
            "description": payload.description,
            "status": payload.status,
            "priority": payload.priority,
            "due_date": _serialize_due_date(payload.due_date),
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        record = await db.create_record(collection=COLLECTION, data=data)
        log_with_user_context(logger, "info", "Task created", user_id=owner_id, task_id=record["id"])
        return _to_task(record)


async def get_task(*, db: DBClient, owner_id: str, task_id: str) -> Task:
    """Fetch one task visible to `owner_id`.

    Raises:
        RecordNotFoundError: If the task does not exist or belongs to someone else
    """
    record = await db.get_first_record(
        collection=COLLECTION,
        filter_query=f'id = "{sanitize_param(task_id)}" && owner_id = "{sanitize_param(owner_id)}"',
    )
    if record is None:
        raise RecordNotFoundError(f"Task not found: {task_id}")
    return _to_task(record)


async def update_task(
    *,
    db: DBClient,
    owner_id: str,
    task_id: str,
    payload: TaskUpdate,
    now: datetime | None = None,
) -> Task:
    """Apply a partial update to a task owned by `owner_id`.

    Raises:
        ValidationError: If the payload changes nothing
        RecordNotFoundError: If the task does not exist or belongs to someone else
    """
    with span("task_service.update_task"):
        changes = payload.changes()
        if not changes:
            raise ValidationError("Update payload must contain at least one field")

        await get_task(db=db, owner_id=owner_id, task_id=task_id)

        if "due_date" in changes:
            changes["due_date"] = _serialize_due_date(changes["due_date"])
        changes["updated_at"] = _timestamp(now)

        record = await db.update_record(collection=COLLECTION, record_id=task_id, data=changes)
        log_with_user_context(
            logger, "info", "Task updated", user_id=owner_id, task_id=task_id, fields=sorted(changes)
        )
        return _to_task(record)


async def delete_task(*, db: DBClient, owner_id: str, task_id: str) -> None:
    """Delete a task owned by `owner_id`.

    Raises:
        RecordNotFoundError: If the task does not exist or belongs to someone else
    """
    with span("task_service.delete_task"):
        await get_task(db=db, owner_id=owner_id, task_id=task_id)
        await db.delete_record(collection=COLLECTION, record_id=task_id)
        log_with_user_context(logger, "info", "Task deleted", user_id=owner_id, task_id=task_id)
