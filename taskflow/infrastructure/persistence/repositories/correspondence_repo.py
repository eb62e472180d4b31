"""Correspondence repository: persists notification records. Implements INotificationSink."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.notification import NotificationRecord
from taskflow.infrastructure.persistence.models.correspondence import TaskCorrespondence
from taskflow.infrastructure.persistence.repositories.base import BaseRepository


def _to_record(c: TaskCorrespondence) -> NotificationRecord:
    return NotificationRecord(
        id=c.id,
        subject=c.subject,
        body=c.body,
        recipients=list(c.recipients or []),
        sender=c.sender,
        main_task_id=c.main_task_id,
        sub_task_id=c.sub_task_id,
        created_at=c.created_at,
    )


class CorrespondenceRepository(BaseRepository):
    """Notification sink backed by the task_correspondence table."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db)

    async def record(
        self,
        subject: str,
        body: str,
        recipients: list[str],
        sender: str,
        main_task_id: str,
        sub_task_id: str | None = None,
    ) -> str:
        row = TaskCorrespondence(
            subject=subject,
            body=body,
            recipients=list(recipients),
            sender=sender,
            main_task_id=main_task_id,
            sub_task_id=sub_task_id,
        )
        async with self.store_errors("record_notification"):
            self.db.add(row)
            await self.db.flush()
        return row.id

    async def list_for_main_task(self, main_task_id: str) -> list[NotificationRecord]:
        """Return records linked to the main task, oldest first."""
        async with self.store_errors("list_notifications"):
            result = await self.db.execute(
                select(TaskCorrespondence)
                .where(TaskCorrespondence.main_task_id == main_task_id)
                .order_by(TaskCorrespondence.created_at.asc())
            )
            return [_to_record(c) for c in result.scalars().all()]
