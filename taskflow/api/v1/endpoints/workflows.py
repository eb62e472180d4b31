"""Workflow API: save and fetch designer graphs by title."""

import json

from fastapi import APIRouter

from taskflow.api.v1.dependencies import WorkflowRepoDep
from taskflow.application.services.workflow_graph_codec import serialize_workflow_graph
from taskflow.domain.entities.workflow import WorkflowDefinitionEntity
from taskflow.domain.exceptions import ResourceNotFoundException
from taskflow.schemas.workflow import WorkflowResponse, WorkflowSaveRequest

router = APIRouter()


def _to_response(definition: WorkflowDefinitionEntity) -> WorkflowResponse:
    graph = json.loads(definition.graph_json)
    return WorkflowResponse(
        id=definition.id,
        title=definition.title,
        is_active=definition.is_active,
        nodes=graph.get("nodes", []),
        edges=graph.get("edges", []),
        created_at=definition.created_at,
    )


@router.put("/{title}", response_model=WorkflowResponse)
async def save_workflow(title: str, body: WorkflowSaveRequest, workflow_repo: WorkflowRepoDep):
    """Create or replace the workflow graph stored under title (always Active)."""
    blob = serialize_workflow_graph(body.nodes, body.edges)
    return _to_response(await workflow_repo.update_or_create_workflow(title, blob))


@router.get("/{title}", response_model=WorkflowResponse)
async def get_workflow(title: str, workflow_repo: WorkflowRepoDep):
    """Get the latest workflow stored under title."""
    definition = await workflow_repo.get_by_title(title)
    if definition is None:
        raise ResourceNotFoundException("workflow", title)
    return _to_response(definition)
