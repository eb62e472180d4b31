"""Shared utilities: request context, enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from taskflow.shared.context import (
    clear_current_user,
    get_current_user_email,
    resolve_sender,
    set_current_user,
)
from taskflow.shared.enums import (
    NotifyWho,
    TaskField,
    TaskStatus,
    WorkflowNodeType,
    WorkflowRunStatus,
)

__all__ = [
    "NotifyWho",
    "TaskField",
    "TaskStatus",
    "WorkflowNodeType",
    "WorkflowRunStatus",
    "clear_current_user",
    "get_current_user_email",
    "resolve_sender",
    "set_current_user",
]
