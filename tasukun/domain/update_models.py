"""Update models for store operations."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasukun.core.config import Constants
from tasukun.domain.task import TaskPriority, TaskStatus


class TaskUpdate(BaseModel):
    """Partial update payload for a task. Only fields the client sent are applied."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=Constants.TASK_TITLE_MAX_LENGTH)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = Field(
        default=None, description="New due instant; naive and date-only values are read as UTC (midnight for a date)"
    )

    @field_validator("status", "priority")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """These fields may be omitted but not cleared."""
        if v is None:
            msg = "Field may not be null"
            raise ValueError(msg)
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str:
        """Titles may be omitted but never cleared or blank."""
        stripped = v.strip() if v is not None else ""
        if not stripped:
            msg = "Title must not be empty"
            raise ValueError(msg)
        return stripped

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        """Treat empty strings as a request to clear the field."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def changes(self) -> dict[str, Any]:
        """Fields explicitly provided by the client."""
        return self.model_dump(exclude_unset=True)
