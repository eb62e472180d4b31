"""Shared enumerations for the Taskflow application.

Task lifecycle status and workflow node vocabulary. Stored values match the
strings written by the workflow designer and the task lists.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TaskStatus(_ValuesMixin, str, Enum):
    """Status shared by main tasks and sub-tasks."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class WorkflowNodeType(_ValuesMixin, str, Enum):
    """Node kinds a workflow graph may contain."""

    TASK = "Task"
    EMAIL = "Email"
    ALERT = "Alert"
    CONDITION = "Condition"


class NotifyWho(_ValuesMixin, str, Enum):
    """Recipient selector for Alert nodes."""

    ASSIGNEE = "assignee"
    OWNER = "owner"
    BOTH = "both"


class TaskField(_ValuesMixin, str, Enum):
    """Fields editable through the logged field-update operations."""

    DUE_DATE = "due_date"
    ASSIGNEE = "assignee"
    DESCRIPTION = "description"
    STATUS = "status"


class WorkflowRunStatus(_ValuesMixin, str, Enum):
    """Outcome of one workflow traversal."""

    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"
