"""Task API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from taskflow.shared.enums import TaskStatus


class MainTaskCreateRequest(BaseModel):
    """Request body for creating a main task. Assignee is an email (user created on demand)."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    remarks: str = ""
    due_date: datetime | None = None
    assignee_email: EmailStr | None = None
    project: str | None = Field(default=None, max_length=255)


class SubTaskCreateRequest(BaseModel):
    """Request body for creating a sub-task (optionally under a parent sub-task)."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    remarks: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    due_date: datetime | None = None
    assignee_email: EmailStr | None = None
    parent_sub_task_id: str | None = None
    category: str | None = Field(default=None, max_length=255)


class StatusChangeRequest(BaseModel):
    """Request body for a status change.

    remarks=None keeps the stored remarks; any string replaces them (the
    stored node tag is re-appended when missing).
    """

    status: TaskStatus
    remarks: str | None = None
    due_date: datetime | None = None


class MainTaskResponse(BaseModel):
    """Main task response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    remarks: str
    status: TaskStatus
    due_date: datetime | None
    end_date: datetime | None
    assignee_email: str | None
    creator_email: str | None


class SubTaskResponse(BaseModel):
    """Sub-task response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    main_task_id: str
    parent_sub_task_id: str | None
    title: str
    description: str | None
    remarks: str
    status: TaskStatus
    due_date: datetime | None
    end_date: datetime | None
    assignee_email: str | None
    category: str | None


class MainTaskDetailResponse(MainTaskResponse):
    """Main task with its sub-task forest (flat, parent links included) and roll-up."""

    sub_tasks: list[SubTaskResponse] = Field(default_factory=list)
    completed_sub_tasks: int = 0
    total_sub_tasks: int = 0


class BlockersResponse(BaseModel):
    """409 body when a sub-task has incomplete descendants."""

    error: str = "INCOMPLETE_CHILDREN"
    message: str
    details: dict[str, Any]
