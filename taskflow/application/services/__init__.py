"""Application services: hierarchy engine, workflow engine, graph codec."""

from taskflow.application.services.engines import build_engines
from taskflow.application.services.hierarchy_engine import HierarchyEngine
from taskflow.application.services.workflow_engine import (
    WorkflowEngine,
    WorkflowRunResult,
)
from taskflow.application.services.workflow_graph_codec import (
    parse_workflow_graph,
    serialize_workflow_graph,
)

__all__ = [
    "HierarchyEngine",
    "WorkflowEngine",
    "WorkflowRunResult",
    "build_engines",
    "parse_workflow_graph",
    "serialize_workflow_graph",
]
