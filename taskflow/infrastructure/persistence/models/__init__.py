"""ORM models. Import here so Base.metadata sees every table."""

from taskflow.infrastructure.persistence.models.correspondence import TaskCorrespondence
from taskflow.infrastructure.persistence.models.task import MainTask, SubTask
from taskflow.infrastructure.persistence.models.user import User
from taskflow.infrastructure.persistence.models.workflow import WorkflowDefinition

__all__ = [
    "MainTask",
    "SubTask",
    "TaskCorrespondence",
    "User",
    "WorkflowDefinition",
]
