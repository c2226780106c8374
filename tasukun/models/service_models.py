"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting store
dictionaries into typed objects with validation.
"""

from pydantic import BaseModel, ConfigDict, Field

from tasukun.domain.task import Task


class StatusCounts(BaseModel):
    """Per-status counts over one filtered listing."""

    total: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0


class TaskListing(BaseModel):
    """Filtered tasks plus counts computed from the same filtered set."""

    model_config = ConfigDict(populate_by_name=True)

    tasks: list[Task]
    status_counts: StatusCounts = Field(..., alias="statusCounts")


class NotificationResult(BaseModel):
    """Outcome of one notification attempt."""

    success: bool
    status_code: int | None = None
    error: str | None = None
