"""Task domain models and enums."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, Field, field_validator

from tasukun.core.errors import ValidationError


E = TypeVar("E", bound=StrEnum)


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DueBucket(StrEnum):
    """Named due-date classification used to post-filter listings."""

    OVERDUE = "overdue"
    DUE_SOON = "due_soon"


class TaskAction(StrEnum):
    """Mutation kinds reported to the notification channel."""

    CREATED = "created"
    UPDATED = "updated"


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from the store")
    owner_id: str = Field(..., description="User who owns the task")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Current status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority")
    due_date: datetime | None = Field(
        default=None, description="Optional due instant; naive and date-only values are read as UTC (midnight for a date)"
    )
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


def _split_csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _parse_enum_set(enum_type: type[E], raw: str | None, param_name: str) -> frozenset[E]:
    values = set()
    for part in _split_csv(raw):
        try:
            values.add(enum_type(part))
        except ValueError as e:
            allowed = ", ".join(member.value for member in enum_type)
            raise ValidationError(f"Invalid value '{part}' for {param_name}. Allowed: {allowed}") from e
    return frozenset(values)


class TaskFilters(BaseModel):
    """Request-scoped listing filter (never persisted)."""

    search: str = ""
    statuses: frozenset[TaskStatus] = frozenset()
    due_buckets: frozenset[DueBucket] = frozenset()
    priorities: frozenset[TaskPriority] = frozenset()

    @field_validator("search")
    @classmethod
    def strip_search(cls, v: str) -> str:
        """Whitespace-only search means no search."""
        return v.strip()

    @classmethod
    def from_query_params(
        cls,
        *,
        search: str | None = None,
        statuses: str | None = None,
        due_filters: str | None = None,
        priorities: str | None = None,
    ) -> "TaskFilters":
        """Build filters from comma-separated query string values.

        Raises:
            ValidationError: If a list contains an unknown value
        """
        return cls(
            search=search or "",
            statuses=_parse_enum_set(TaskStatus, statuses, "statuses"),
            due_buckets=_parse_enum_set(DueBucket, due_filters, "due_filters"),
            priorities=_parse_enum_set(TaskPriority, priorities, "priorities"),
        )
