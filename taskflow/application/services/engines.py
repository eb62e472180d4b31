"""Wire the hierarchy and workflow engines together.

The two engines call each other: sub-task completion triggers the
workflow, and workflow Task nodes create sub-tasks through the hierarchy
engine (so they get the created notification and roll-up). Build both
here instead of wiring the cycle at every call site.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

from taskflow.application.services.hierarchy_engine import HierarchyEngine
from taskflow.application.services.workflow_engine import WorkflowEngine

if TYPE_CHECKING:
    from taskflow.application.interfaces.repositories import (
        ITaskRepository,
        IWorkflowRepository,
    )
    from taskflow.application.interfaces.services import INotificationSink
    from taskflow.core.config import Settings


def build_engines(
    task_repo: ITaskRepository,
    workflow_repo: IWorkflowRepository,
    notification_sink: INotificationSink,
    settings: Settings | None = None,
    workflow_scope: Callable[[], AbstractAsyncContextManager[Any]] | None = None,
) -> tuple[HierarchyEngine, WorkflowEngine]:
    """Return (hierarchy, workflow) engines sharing the given stores.

    workflow_scope, when given, wraps every workflow run triggered by a
    status change (see HierarchyEngine).
    """
    hierarchy = HierarchyEngine(
        task_repo, notification_sink, workflow_scope=workflow_scope, settings=settings
    )
    workflow = WorkflowEngine(
        task_repo,
        workflow_repo,
        notification_sink,
        create_sub_task=hierarchy.create_sub_task,
        settings=settings,
    )
    hierarchy.workflow_engine = workflow
    return hierarchy, workflow
