"""Workflow graph domain entities.

A workflow graph is a named, directed graph of typed nodes and edges. Each
node kind is its own frozen dataclass; WorkflowNode is the union the
engine matches on. A graph is immutable once loaded for a traversal.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime

from taskflow.shared.enums import NotifyWho, WorkflowNodeType

_CONDITION_RE = re.compile(r"If\s+(.+)", re.IGNORECASE)
# A keyword directly preceded by one of these does not satisfy the condition.
_NEGATION_PATTERN = r"(?:(not|no|never|non)[\s-]+)?"


@dataclass(frozen=True)
class TaskNode:
    """Creates a follow-on task assigned to `assignee` (an email)."""

    id: str
    label: str
    assignee: str | None = None
    description: str | None = None

    kind = WorkflowNodeType.TASK


@dataclass(frozen=True)
class EmailNode:
    """Records a notification addressed to `assignee`."""

    id: str
    label: str
    assignee: str | None = None
    description: str | None = None
    email_subject: str | None = None

    kind = WorkflowNodeType.EMAIL


@dataclass(frozen=True)
class AlertNode:
    """Notifies the completed task's assignee and/or owner; never blocks descent."""

    id: str
    label: str
    notify_who: NotifyWho = NotifyWho.ASSIGNEE
    description: str | None = None
    email_subject: str | None = None

    kind = WorkflowNodeType.ALERT


@dataclass(frozen=True)
class ConditionNode:
    """Pure gate: passes when its keyword ('If <keyword>') appears in the remarks."""

    id: str
    label: str

    kind = WorkflowNodeType.CONDITION

    @property
    def keyword(self) -> str | None:
        """Lower-cased keyword from an 'If <keyword>' label, or None (always passes)."""
        match = _CONDITION_RE.search(self.label or "")
        if not match:
            return None
        return match.group(1).strip().lower()

    def passes(self, remarks: str | None) -> bool:
        """Return whether the remarks mention the keyword (case-insensitive).

        The keyword must start a word; a negated mention ("not urgent",
        "non-urgent") does not count, but any other mention does.
        """
        keyword = self.keyword
        if not keyword:
            return True
        pattern = re.compile(
            r"(?<![\w-])" + _NEGATION_PATTERN + re.escape(keyword), re.IGNORECASE
        )
        return any(m.group(1) is None for m in pattern.finditer(remarks or ""))


WorkflowNode = TaskNode | EmailNode | AlertNode | ConditionNode


@dataclass(frozen=True)
class WorkflowEdge:
    """Directed edge source -> target."""

    source: str
    target: str


@dataclass(frozen=True)
class WorkflowGraph:
    """Parsed graph: nodes by id plus edges in stored order."""

    nodes: dict[str, WorkflowNode]
    edges: tuple[WorkflowEdge, ...] = field(default_factory=tuple)

    def outgoing(self, node_id: str) -> list[WorkflowEdge]:
        """Edges leaving node_id, in stored order."""
        return [e for e in self.edges if e.source == node_id]

    def node(self, node_id: str) -> WorkflowNode | None:
        return self.nodes.get(node_id)


@dataclass
class WorkflowDefinitionEntity:
    """Stored workflow definition: title (lookup key), active flag, serialized graph."""

    id: str
    title: str
    is_active: bool
    graph_json: str
    created_at: datetime | None = None
