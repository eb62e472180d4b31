"""Application DTOs."""

from taskflow.application.dtos.notification import NotificationRecord
from taskflow.application.dtos.task import (
    UNSET,
    MainTaskCreate,
    SubTaskCreate,
    TaskProgress,
    TaskUpdate,
)

__all__ = [
    "UNSET",
    "MainTaskCreate",
    "NotificationRecord",
    "SubTaskCreate",
    "TaskProgress",
    "TaskUpdate",
]
