"""Domain models and DTOs."""

from tasukun.domain.create_models import GoogleTokenCreate, TaskCreate
from tasukun.domain.google import EventData, GoogleTokenRecord, RemoteEvent, TokenSet
from tasukun.domain.task import DueBucket, Task, TaskAction, TaskFilters, TaskPriority, TaskStatus
from tasukun.domain.update_models import TaskUpdate
from tasukun.domain.user import SessionUser


__all__ = [
    "DueBucket",
    "EventData",
    "GoogleTokenCreate",
    "GoogleTokenRecord",
    "RemoteEvent",
    "SessionUser",
    "Task",
    "TaskAction",
    "TaskCreate",
    "TaskFilters",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "TokenSet",
]
