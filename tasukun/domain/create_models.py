"""Pydantic models for creating records in the store."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from tasukun.core.config import Constants
from tasukun.domain.task import TaskPriority, TaskStatus


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class TaskCreate(BaseModel):
    """Request body for creating a task."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=Constants.TASK_TITLE_MAX_LENGTH, description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Initial status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority")
    due_date: datetime | None = Field(
        default=None, description="Optional due instant; naive and date-only values are read as UTC (midnight for a date)"
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject whitespace-only titles."""
        stripped = v.strip()
        if not stripped:
            msg = "Title must not be empty"
            raise ValueError(msg)
        return stripped

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        """Treat empty strings as absent values."""
        return _blank_to_none(v)

    @field_validator("status", "priority", mode="before")
    @classmethod
    def null_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        """Fall back to the default when the client sends null or an empty string."""
        if _blank_to_none(v) is None:
            return TaskStatus.TODO if info.field_name == "status" else TaskPriority.MEDIUM
        return v


class GoogleTokenCreate(BaseModel):
    """Pydantic model for the upsert payload of a Google token record."""

    user_id: str = Field(..., min_length=1, description="Owner of the credential")
    access_token: str = Field(..., min_length=1, description="Current access token")
    refresh_token: str | None = Field(default=None, description="Long-lived refresh token")
    expiry_date: datetime = Field(..., description="Access token expiry instant (UTC)")
