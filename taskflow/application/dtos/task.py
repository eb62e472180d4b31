"""DTOs for creating and updating tasks (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from taskflow.shared.enums import TaskStatus


@dataclass(frozen=True)
class MainTaskCreate:
    """Fields for a new main task."""

    title: str
    description: str | None = None
    remarks: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    due_date: datetime | None = None
    assignee_id: str | None = None
    creator_id: str | None = None
    project: str | None = None


@dataclass(frozen=True)
class SubTaskCreate:
    """Fields for a new sub-task under main_task_id (optionally under a parent sub-task)."""

    main_task_id: str
    title: str
    description: str | None = None
    remarks: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    due_date: datetime | None = None
    assignee_id: str | None = None
    creator_id: str | None = None
    parent_sub_task_id: str | None = None
    category: str | None = None


# Sentinel so updates can distinguish "clear to None" from "leave unchanged".
UNSET: Any = object()


@dataclass(frozen=True)
class TaskUpdate:
    """Partial update applied by the task store. Fields left UNSET are not written."""

    status: Any = UNSET
    remarks: Any = UNSET
    end_date: Any = UNSET
    due_date: Any = UNSET
    assignee_id: Any = UNSET
    description: Any = UNSET

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return {
            name: value
            for name, value in (
                ("status", self.status),
                ("remarks", self.remarks),
                ("end_date", self.end_date),
                ("due_date", self.due_date),
                ("assignee_id", self.assignee_id),
                ("description", self.description),
            )
            if value is not UNSET
        }


@dataclass(frozen=True)
class TaskProgress:
    """Roll-up of a main task's direct sub-tasks."""

    main_task_id: str
    completed: int
    total: int
    auto_completed: bool = False
    blocker_ids: list[str] = field(default_factory=list)

    @property
    def percent(self) -> float:
        return self.completed / self.total if self.total else 0.0
