"""Task API: thin routes delegating to TaskRepository and HierarchyEngine."""

from fastapi import APIRouter, Query

from taskflow.api.v1.dependencies import (
    CorrespondenceRepoDep,
    HierarchyEngineDep,
    TaskRepoDep,
)
from taskflow.application.dtos.task import MainTaskCreate, SubTaskCreate
from taskflow.domain.exceptions import ResourceNotFoundException
from taskflow.infrastructure.persistence.repositories import TaskRepository
from taskflow.schemas.task import (
    BlockersResponse,
    MainTaskCreateRequest,
    MainTaskDetailResponse,
    MainTaskResponse,
    StatusChangeRequest,
    SubTaskCreateRequest,
    SubTaskResponse,
)
from taskflow.shared.context import get_current_user_email

router = APIRouter()


async def _resolve_optional(task_repo: TaskRepository, email: str | None) -> str | None:
    return await task_repo.resolve_identity(email) if email else None


@router.post("", response_model=MainTaskResponse, status_code=201)
async def create_main_task(body: MainTaskCreateRequest, task_repo: TaskRepoDep):
    """Create a main task. The acting user (X-User-Email) becomes its creator."""
    main_task_id = await task_repo.create_main_task(
        MainTaskCreate(
            title=body.title,
            description=body.description,
            remarks=body.remarks,
            due_date=body.due_date,
            assignee_id=await _resolve_optional(task_repo, body.assignee_email),
            creator_id=await _resolve_optional(task_repo, get_current_user_email()),
            project=body.project,
        )
    )
    return MainTaskResponse.model_validate(await task_repo.get_main_task(main_task_id))


@router.get("/{main_task_id}", response_model=MainTaskDetailResponse)
async def get_main_task(main_task_id: str, task_repo: TaskRepoDep):
    """Get a main task with all of its sub-tasks and the direct sub-task roll-up."""
    main_task = await task_repo.get_main_task(main_task_id)
    if main_task is None:
        raise ResourceNotFoundException("main_task", main_task_id)
    sub_tasks = await task_repo.list_sub_tasks(main_task_id)
    direct = [t for t in sub_tasks if t.is_direct_child]
    return MainTaskDetailResponse(
        **MainTaskResponse.model_validate(main_task).model_dump(),
        sub_tasks=[SubTaskResponse.model_validate(t) for t in sub_tasks],
        completed_sub_tasks=sum(1 for t in direct if t.is_completed),
        total_sub_tasks=len(direct),
    )


@router.patch("/{main_task_id}/status", response_model=MainTaskResponse)
async def change_main_task_status(
    main_task_id: str,
    body: StatusChangeRequest,
    hierarchy: HierarchyEngineDep,
    task_repo: TaskRepoDep,
):
    """Set a main task's status directly; Completed triggers the active workflow."""
    await hierarchy.change_main_task_status(main_task_id, body.status, body.remarks)
    return MainTaskResponse.model_validate(await task_repo.get_main_task(main_task_id))


@router.post(
    "/{main_task_id}/subtasks", response_model=SubTaskResponse, status_code=201
)
async def create_sub_task(
    main_task_id: str,
    body: SubTaskCreateRequest,
    hierarchy: HierarchyEngineDep,
    task_repo: TaskRepoDep,
):
    """Create a sub-task (optionally nested). Notifies the assignee and rolls up."""
    sub_task_id = await hierarchy.create_sub_task(
        SubTaskCreate(
            main_task_id=main_task_id,
            title=body.title,
            description=body.description,
            remarks=body.remarks,
            status=body.status,
            due_date=body.due_date,
            assignee_id=await _resolve_optional(task_repo, body.assignee_email),
            creator_id=await _resolve_optional(task_repo, get_current_user_email()),
            parent_sub_task_id=body.parent_sub_task_id,
            category=body.category,
        )
    )
    return SubTaskResponse.model_validate(await task_repo.get_sub_task(sub_task_id))


@router.patch(
    "/{main_task_id}/subtasks/{sub_task_id}/status",
    response_model=SubTaskResponse,
    responses={409: {"description": "Incomplete descendants", "model": BlockersResponse}},
)
async def change_sub_task_status(
    main_task_id: str,
    sub_task_id: str,
    body: StatusChangeRequest,
    hierarchy: HierarchyEngineDep,
    task_repo: TaskRepoDep,
    force: bool = Query(False, description="Complete every incomplete descendant too"),
):
    """Change a sub-task's status. Returns 409 with blockers unless force=true."""
    sub_task = await task_repo.get_sub_task(sub_task_id)
    if sub_task is None or sub_task.main_task_id != main_task_id:
        raise ResourceNotFoundException("sub_task", sub_task_id)
    await hierarchy.change_sub_task_status(
        sub_task_id,
        main_task_id,
        body.status,
        body.remarks,
        force=force,
        new_due_date=body.due_date,
    )
    return SubTaskResponse.model_validate(await task_repo.get_sub_task(sub_task_id))


@router.get("/{main_task_id}/notifications")
async def list_notifications(main_task_id: str, sink: CorrespondenceRepoDep):
    """Notification records queued for this main task, oldest first."""
    records = await sink.list_for_main_task(main_task_id)
    return [
        {
            "id": r.id,
            "subject": r.subject,
            "body": r.body,
            "recipients": r.recipients,
            "sender": r.sender,
            "sub_task_id": r.sub_task_id,
            "created_at": r.created_at,
        }
        for r in records
    ]
