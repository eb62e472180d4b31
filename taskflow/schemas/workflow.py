"""Workflow API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class WorkflowSaveRequest(BaseModel):
    """Designer graph: nodes `{id, data: {type, label, ...}}` and edges `{source, target}`."""

    nodes: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[dict[str, Any]] = Field(default_factory=list)


class WorkflowResponse(BaseModel):
    """Workflow definition response with the decoded graph."""

    id: str
    title: str
    is_active: bool
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]
    created_at: datetime | None = None
