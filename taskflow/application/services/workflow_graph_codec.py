"""Workflow graph blob codec: stored JSON <-> WorkflowGraph.

The designer stores `{"nodes": [...], "edges": [...]}` where each node is
`{"id", "data": {"type", "label", "assignee", "description",
"emailSubject", "notifyWho", ...}}` and each edge is `{"source", "target"}`.
Designer-only node kinds (e.g. "Main Task", "Start") and unknown
`notifyWho` values are tolerated: such nodes are left out of the graph and
the walk treats edges into them as dead ends.
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from taskflow.domain.entities.workflow import (
    AlertNode,
    ConditionNode,
    EmailNode,
    TaskNode,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from taskflow.domain.exceptions import WorkflowGraphParseException
from taskflow.shared.enums import NotifyWho, WorkflowNodeType
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

GRAPH_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["nodes", "edges"],
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "data"],
                "properties": {
                    "id": {"type": ["string", "integer"]},
                    "data": {
                        "type": "object",
                        "required": ["type"],
                        "properties": {
                            "type": {"type": "string"},
                            "label": {"type": ["string", "null"]},
                            "assignee": {"type": ["string", "null"]},
                            "description": {"type": ["string", "null"]},
                            "emailSubject": {"type": ["string", "null"]},
                            "notifyWho": {"type": ["string", "null"]},
                        },
                    },
                },
            },
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {
                    "source": {"type": ["string", "integer"]},
                    "target": {"type": ["string", "integer"]},
                },
            },
        },
    },
}


def _blank_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _build_node(node_id: str, data: dict[str, Any]) -> WorkflowNode | None:
    """Map one stored node to its dataclass variant; None for designer-only kinds."""
    label = data.get("label") or ""
    node_type = data.get("type")
    if node_type == WorkflowNodeType.TASK.value:
        return TaskNode(
            id=node_id,
            label=label,
            assignee=_blank_to_none(data.get("assignee")),
            description=_blank_to_none(data.get("description")),
        )
    if node_type == WorkflowNodeType.EMAIL.value:
        return EmailNode(
            id=node_id,
            label=label,
            assignee=_blank_to_none(data.get("assignee")),
            description=_blank_to_none(data.get("description")),
            email_subject=_blank_to_none(data.get("emailSubject")),
        )
    if node_type == WorkflowNodeType.ALERT.value:
        raw_who = data.get("notifyWho") or NotifyWho.ASSIGNEE.value
        try:
            notify_who = NotifyWho(raw_who)
        except ValueError:
            logger.warning(
                "Alert node %s has unknown notifyWho %r; defaulting to assignee",
                node_id,
                raw_who,
            )
            notify_who = NotifyWho.ASSIGNEE
        return AlertNode(
            id=node_id,
            label=label,
            notify_who=notify_who,
            description=_blank_to_none(data.get("description")),
            email_subject=_blank_to_none(data.get("emailSubject")),
        )
    if node_type == WorkflowNodeType.CONDITION.value:
        return ConditionNode(id=node_id, label=label)
    logger.debug("Skipping non-executable node %s (type=%r)", node_id, node_type)
    return None


def parse_workflow_graph(raw: str | bytes | dict[str, Any], title: str | None = None) -> WorkflowGraph:
    """Parse a stored graph blob.

    Raises:
        WorkflowGraphParseException: Blob is not JSON or does not match GRAPH_SCHEMA.
    """
    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise WorkflowGraphParseException(f"not valid JSON ({e})", title) from e
    else:
        payload = raw
    try:
        jsonschema.validate(instance=payload, schema=GRAPH_SCHEMA)
    except jsonschema.ValidationError as e:
        raise WorkflowGraphParseException(e.message, title) from e

    nodes: dict[str, WorkflowNode] = {}
    for item in payload["nodes"]:
        node_id = str(item["id"])
        node = _build_node(node_id, item["data"])
        if node is not None:
            nodes[node_id] = node
    edges = tuple(
        WorkflowEdge(source=str(e["source"]), target=str(e["target"]))
        for e in payload["edges"]
    )
    return WorkflowGraph(nodes=nodes, edges=edges)


def serialize_workflow_graph(nodes: list[dict[str, Any]], edges: list[dict[str, Any]]) -> str:
    """Serialize designer nodes/edges into the stored blob after validating the shape.

    Raises:
        WorkflowGraphParseException: nodes/edges do not match GRAPH_SCHEMA.
    """
    payload = {"nodes": nodes, "edges": edges}
    try:
        jsonschema.validate(instance=payload, schema=GRAPH_SCHEMA)
    except jsonschema.ValidationError as e:
        raise WorkflowGraphParseException(e.message) from e
    return json.dumps(payload)
