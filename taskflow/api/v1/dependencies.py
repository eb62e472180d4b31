"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for repositories and the engines. Every
dependency shares the request's transactional session; routes depend only
on these, not on infrastructure directly.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.services import HierarchyEngine, build_engines
from taskflow.infrastructure.persistence.database import get_db_transactional
from taskflow.infrastructure.persistence.repositories import (
    CorrespondenceRepository,
    TaskRepository,
    WorkflowRepository,
)


async def get_task_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> TaskRepository:
    """Task repository on the request transaction."""
    return TaskRepository(db)


async def get_workflow_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowRepository:
    """Workflow definition repository on the request transaction."""
    return WorkflowRepository(db)


async def get_correspondence_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> CorrespondenceRepository:
    """Notification sink on the request transaction."""
    return CorrespondenceRepository(db)


async def get_hierarchy_engine(
    task_repo: Annotated[TaskRepository, Depends(get_task_repo)],
    workflow_repo: Annotated[WorkflowRepository, Depends(get_workflow_repo)],
    sink: Annotated[CorrespondenceRepository, Depends(get_correspondence_repo)],
) -> HierarchyEngine:
    """Hierarchy engine with its workflow engine attached.

    Workflow runs use a savepoint on the request transaction, so a failed run
    never takes the triggering status change down with it.
    """
    hierarchy, _ = build_engines(
        task_repo, workflow_repo, sink, workflow_scope=task_repo.savepoint
    )
    return hierarchy


TaskRepoDep = Annotated[TaskRepository, Depends(get_task_repo)]
WorkflowRepoDep = Annotated[WorkflowRepository, Depends(get_workflow_repo)]
CorrespondenceRepoDep = Annotated[CorrespondenceRepository, Depends(get_correspondence_repo)]
HierarchyEngineDep = Annotated[HierarchyEngine, Depends(get_hierarchy_engine)]
