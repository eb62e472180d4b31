"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from typing import Any, Protocol


# Notification sink interface
class INotificationSink(Protocol):
    """Protocol for recording outbound notifications; delivery happens out-of-process."""

    async def record(
        self,
        subject: str,
        body: str,
        recipients: list[str],
        sender: str,
        main_task_id: str,
        sub_task_id: str | None = None,
    ) -> str:
        """Persist a notification record; return its id."""


# Workflow engine interface
class IWorkflowEngine(Protocol):
    """Protocol for resuming a workflow graph when a tagged task completes."""

    async def on_task_completed(
        self,
        main_task_id: str,
        completed_task_id: str,
        *,
        is_sub_task: bool,
    ) -> Any:
        """Walk the graph from the completed task's node tag and return a run summary. Never raises."""
