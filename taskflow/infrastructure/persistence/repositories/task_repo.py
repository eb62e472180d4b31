"""Task repository: main tasks, sub-tasks and user identities. Implements ITaskRepository."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.task import MainTaskCreate, SubTaskCreate, TaskUpdate
from taskflow.domain.entities.task import MainTaskEntity, SubTaskEntity
from taskflow.domain.exceptions import ResourceNotFoundException
from taskflow.infrastructure.persistence.models.task import MainTask, SubTask
from taskflow.infrastructure.persistence.models.user import User
from taskflow.infrastructure.persistence.repositories.base import BaseRepository
from taskflow.shared.enums import TaskStatus
from taskflow.shared.utils.datetime import ensure_utc


def _email(user: User | None) -> str | None:
    return user.email if user is not None else None


def _to_main_entity(t: MainTask) -> MainTaskEntity:
    """Map MainTask ORM to MainTaskEntity."""
    return MainTaskEntity(
        id=t.id,
        title=t.title,
        description=t.description,
        remarks=t.remarks or "",
        status=TaskStatus(t.status),
        due_date=ensure_utc(t.due_date),
        end_date=ensure_utc(t.end_date),
        assignee_id=t.assignee_id,
        assignee_email=_email(t.assignee),
        creator_id=t.creator_id,
        creator_email=_email(t.creator),
        created_at=ensure_utc(t.created_at),
    )


def _to_sub_entity(t: SubTask) -> SubTaskEntity:
    """Map SubTask ORM to SubTaskEntity."""
    return SubTaskEntity(
        id=t.id,
        main_task_id=t.main_task_id,
        parent_sub_task_id=t.parent_sub_task_id,
        title=t.title,
        description=t.description,
        remarks=t.remarks or "",
        status=TaskStatus(t.status),
        due_date=ensure_utc(t.due_date),
        end_date=ensure_utc(t.end_date),
        assignee_id=t.assignee_id,
        assignee_email=_email(t.assignee),
        creator_id=t.creator_id,
        creator_email=_email(t.creator),
        category=t.category,
        created_at=ensure_utc(t.created_at),
    )


def _apply(row: MainTask | SubTask, update: TaskUpdate) -> None:
    for name, value in update.changes().items():
        if isinstance(value, TaskStatus):
            value = value.value
        elif name == "remarks" and value is None:
            value = ""
        setattr(row, name, value)


class TaskRepository(BaseRepository):
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db)

    async def _load_main(self, main_task_id: str) -> MainTask | None:
        result = await self.db.execute(
            select(MainTask)
            .where(MainTask.id == main_task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _load_sub(self, sub_task_id: str) -> SubTask | None:
        result = await self.db.execute(
            select(SubTask)
            .where(SubTask.id == sub_task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _list_sub(self, *criteria: Any) -> list[SubTaskEntity]:
        result = await self.db.execute(
            select(SubTask)
            .where(*criteria)
            .order_by(SubTask.created_at.asc(), SubTask.id.asc())
            .execution_options(populate_existing=True)
        )
        return [_to_sub_entity(t) for t in result.scalars().all()]

    async def get_main_task(self, main_task_id: str) -> MainTaskEntity | None:
        async with self.store_errors("get_main_task"):
            row = await self._load_main(main_task_id)
        return _to_main_entity(row) if row else None

    async def get_sub_task(self, sub_task_id: str) -> SubTaskEntity | None:
        async with self.store_errors("get_sub_task"):
            row = await self._load_sub(sub_task_id)
        return _to_sub_entity(row) if row else None

    async def list_sub_tasks(self, main_task_id: str) -> list[SubTaskEntity]:
        async with self.store_errors("list_sub_tasks"):
            return await self._list_sub(SubTask.main_task_id == main_task_id)

    async def list_direct_sub_tasks(self, main_task_id: str) -> list[SubTaskEntity]:
        async with self.store_errors("list_direct_sub_tasks"):
            return await self._list_sub(
                SubTask.main_task_id == main_task_id,
                (SubTask.parent_sub_task_id.is_(None)) | (SubTask.parent_sub_task_id == ""),
            )

    async def list_child_sub_tasks(self, parent_sub_task_id: str) -> list[SubTaskEntity]:
        async with self.store_errors("list_child_sub_tasks"):
            return await self._list_sub(SubTask.parent_sub_task_id == parent_sub_task_id)

    async def create_main_task(self, data: MainTaskCreate) -> str:
        """Create a main task and return its id."""
        task = MainTask(
            title=data.title,
            description=data.description,
            remarks=data.remarks or "",
            status=data.status.value,
            project=data.project,
            due_date=data.due_date,
            assignee_id=data.assignee_id,
            creator_id=data.creator_id,
        )
        async with self.store_errors("create_main_task"):
            self.db.add(task)
            await self.db.flush()
        return task.id

    async def create_sub_task(self, data: SubTaskCreate) -> str:
        """Create a sub-task and return its id."""
        task = SubTask(
            main_task_id=data.main_task_id,
            parent_sub_task_id=data.parent_sub_task_id or None,
            title=data.title,
            description=data.description,
            remarks=data.remarks or "",
            status=data.status.value,
            category=data.category,
            due_date=data.due_date,
            assignee_id=data.assignee_id,
            creator_id=data.creator_id,
        )
        async with self.store_errors("create_sub_task"):
            self.db.add(task)
            await self.db.flush()
        return task.id

    async def update_main_task(self, main_task_id: str, update: TaskUpdate) -> None:
        async with self.store_errors("update_main_task"):
            row = await self._load_main(main_task_id)
            if row is None:
                raise ResourceNotFoundException("main_task", main_task_id)
            _apply(row, update)
            await self.db.flush()

    async def update_sub_task(self, sub_task_id: str, update: TaskUpdate) -> None:
        async with self.store_errors("update_sub_task"):
            row = await self._load_sub(sub_task_id)
            if row is None:
                raise ResourceNotFoundException("sub_task", sub_task_id)
            _apply(row, update)
            await self.db.flush()

    async def resolve_identity(self, email: str) -> str:
        """Return the user id for email, creating the user when unknown (ensure user)."""
        normalized = email.strip()
        async with self.store_errors("resolve_identity"):
            result = await self.db.execute(select(User).where(User.email == normalized))
            user = result.scalar_one_or_none()
            if user is None:
                user = User(email=normalized)
                self.db.add(user)
                await self.db.flush()
        return user.id
