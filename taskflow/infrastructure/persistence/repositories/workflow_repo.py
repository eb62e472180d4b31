"""Workflow definition repository. Implements IWorkflowRepository plus authoring."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.domain.entities.workflow import WorkflowDefinitionEntity
from taskflow.infrastructure.persistence.models.workflow import WorkflowDefinition
from taskflow.infrastructure.persistence.repositories.base import BaseRepository
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _to_entity(w: WorkflowDefinition) -> WorkflowDefinitionEntity:
    return WorkflowDefinitionEntity(
        id=w.id,
        title=w.title,
        is_active=w.is_active,
        graph_json=w.graph_json,
        created_at=w.created_at,
    )


class WorkflowRepository(BaseRepository):
    """Workflow definition repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db)

    async def _latest(self, *criteria: Any) -> WorkflowDefinition | None:
        result = await self.db.execute(
            select(WorkflowDefinition)
            .where(*criteria)
            .order_by(WorkflowDefinition.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_title(self, title: str) -> WorkflowDefinitionEntity | None:
        """Return the most recently created definition with this title."""
        async with self.store_errors("get_workflow_by_title"):
            row = await self._latest(WorkflowDefinition.title == title)
        return _to_entity(row) if row else None

    async def get_active(self) -> WorkflowDefinitionEntity | None:
        """Return the most recently created active definition."""
        async with self.store_errors("get_active_workflow"):
            row = await self._latest(WorkflowDefinition.is_active.is_(True))
        return _to_entity(row) if row else None

    async def save_workflow(self, title: str, graph_json: str) -> WorkflowDefinitionEntity:
        """Insert a new active definition (older ones with the same title are shadowed)."""
        row = WorkflowDefinition(title=title, graph_json=graph_json, is_active=True)
        async with self.store_errors("save_workflow"):
            self.db.add(row)
            await self.db.flush()
            await self.db.refresh(row)
        return _to_entity(row)

    async def update_or_create_workflow(
        self, title: str, graph_json: str
    ) -> WorkflowDefinitionEntity:
        """Replace the graph of the latest definition with this title, or create one."""
        async with self.store_errors("update_or_create_workflow"):
            row = await self._latest(WorkflowDefinition.title == title)
            if row is None:
                logger.info("Creating workflow %r", title)
                row = WorkflowDefinition(title=title, graph_json=graph_json, is_active=True)
                self.db.add(row)
            else:
                logger.info("Updating workflow %r (%s)", title, row.id)
                row.graph_json = graph_json
                row.is_active = True
            await self.db.flush()
            await self.db.refresh(row)
        return _to_entity(row)
