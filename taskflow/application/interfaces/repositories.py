"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
Implementations raise StoreException on transport/persistence failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.task import MainTaskCreate, SubTaskCreate, TaskUpdate
    from taskflow.domain.entities.task import MainTaskEntity, SubTaskEntity
    from taskflow.domain.entities.workflow import WorkflowDefinitionEntity


# Task store interface
class ITaskRepository(Protocol):
    """Protocol for the main task / sub-task store (DIP)."""

    async def get_main_task(self, main_task_id: str) -> MainTaskEntity | None:
        """Return main task by ID."""

    async def get_sub_task(self, sub_task_id: str) -> SubTaskEntity | None:
        """Return sub-task by ID."""

    async def list_sub_tasks(self, main_task_id: str) -> list[SubTaskEntity]:
        """Return every sub-task of the main task, at any depth (forest query)."""

    async def list_direct_sub_tasks(self, main_task_id: str) -> list[SubTaskEntity]:
        """Return sub-tasks with no parent sub-task (direct children of the main task)."""

    async def list_child_sub_tasks(self, parent_sub_task_id: str) -> list[SubTaskEntity]:
        """Return sub-tasks whose parent_sub_task_id is the given id."""

    async def create_main_task(self, data: MainTaskCreate) -> str:
        """Create a main task; return its id."""

    async def create_sub_task(self, data: SubTaskCreate) -> str:
        """Create a sub-task; return its id."""

    async def update_main_task(self, main_task_id: str, update: TaskUpdate) -> None:
        """Apply a partial update. Raises ResourceNotFoundException if missing."""

    async def update_sub_task(self, sub_task_id: str, update: TaskUpdate) -> None:
        """Apply a partial update. Raises ResourceNotFoundException if missing."""

    async def resolve_identity(self, email: str) -> str:
        """Return the user id for email, creating the user when unknown."""


# Workflow store interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow definition lookup (DIP)."""

    async def get_by_title(self, title: str) -> WorkflowDefinitionEntity | None:
        """Return the most recently created definition with this title."""

    async def get_active(self) -> WorkflowDefinitionEntity | None:
        """Return the most recently created active definition."""
