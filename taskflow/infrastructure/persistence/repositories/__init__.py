"""Repository implementations of the application store ports."""

from taskflow.infrastructure.persistence.repositories.correspondence_repo import (
    CorrespondenceRepository,
)
from taskflow.infrastructure.persistence.repositories.task_repo import TaskRepository
from taskflow.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowRepository,
)

__all__ = [
    "CorrespondenceRepository",
    "TaskRepository",
    "WorkflowRepository",
]
