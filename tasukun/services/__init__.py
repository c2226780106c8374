from tasukun.services import (
    calendar_service,
    notification_service,
    oauth_service,
    task_service,
)


__all__ = [
    "calendar_service",
    "notification_service",
    "oauth_service",
    "task_service",
]
