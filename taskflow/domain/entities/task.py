"""Task domain entities: main tasks and their sub-task forest.

Sub-tasks belong to one main task (main_task_id) and optionally hang under
another sub-task (parent_sub_task_id). A sub-task without a parent is a
direct child of the main task.
"""

from dataclasses import dataclass
from datetime import datetime

from taskflow.shared.enums import TaskStatus


@dataclass
class MainTaskEntity:
    """Top-level tracked work item."""

    id: str
    title: str
    description: str | None
    remarks: str
    status: TaskStatus
    due_date: datetime | None
    end_date: datetime | None
    assignee_id: str | None
    assignee_email: str | None
    creator_id: str | None
    creator_email: str | None
    created_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def notification_recipients(self) -> list[str]:
        """Creator then assignee email, de-duplicated, empties dropped."""
        recipients: list[str] = []
        for email in (self.creator_email, self.assignee_email):
            if email and email not in recipients:
                recipients.append(email)
        return recipients


@dataclass
class SubTaskEntity:
    """Work item under a main task, optionally nested under another sub-task."""

    id: str
    main_task_id: str
    parent_sub_task_id: str | None
    title: str
    description: str | None
    remarks: str
    status: TaskStatus
    due_date: datetime | None
    end_date: datetime | None
    assignee_id: str | None
    assignee_email: str | None
    creator_id: str | None = None
    creator_email: str | None = None
    category: str | None = None
    created_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_direct_child(self) -> bool:
        """True when the sub-task hangs directly under its main task."""
        return not self.parent_sub_task_id

    def to_blocker(self) -> dict:
        """Summary used when this sub-task blocks a parent's completion."""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "assignee_email": self.assignee_email,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }
