"""Domain entities: tasks, sub-tasks, workflow graphs."""

from taskflow.domain.entities.task import MainTaskEntity, SubTaskEntity
from taskflow.domain.entities.workflow import (
    AlertNode,
    ConditionNode,
    EmailNode,
    TaskNode,
    WorkflowDefinitionEntity,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)

__all__ = [
    "AlertNode",
    "ConditionNode",
    "EmailNode",
    "MainTaskEntity",
    "SubTaskEntity",
    "TaskNode",
    "WorkflowDefinitionEntity",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
]
