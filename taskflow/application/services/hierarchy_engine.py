"""Hierarchy engine: sub-task tree integrity, cascading completion, main task roll-up.

Status changes are applied in a fixed order: status persist -> cascade ->
roll-up -> workflow trigger. Each store call stands alone (no transaction),
so a store failure mid-cascade leaves earlier writes in place and the
error propagates. There is no locking or version check: concurrent
callers race and the last write wins.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, nullcontext
from datetime import datetime
from typing import TYPE_CHECKING, Any

from taskflow.application.dtos.task import UNSET, SubTaskCreate, TaskProgress, TaskUpdate
from taskflow.core.config import Settings, get_settings
from taskflow.domain.exceptions import (
    HierarchyCycleException,
    IncompleteChildrenException,
    ResourceNotFoundException,
    ValidationException,
)
from taskflow.domain.value_objects.node_tag import merge_remarks
from taskflow.shared.context import resolve_sender
from taskflow.shared.enums import TaskField, TaskStatus, WorkflowRunStatus
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import traced
from taskflow.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from taskflow.application.interfaces.repositories import ITaskRepository
    from taskflow.application.interfaces.services import (
        INotificationSink,
        IWorkflowEngine,
    )
    from taskflow.domain.entities.task import MainTaskEntity, SubTaskEntity

logger = get_logger(__name__)

_FIELD_LABELS = {
    TaskField.DUE_DATE: "Due Date",
    TaskField.ASSIGNEE: "Assignee",
    TaskField.DESCRIPTION: "Description",
    TaskField.STATUS: "Status",
}


def _end_date_for(status: TaskStatus) -> datetime | None:
    """Completed stamps now; any other status clears the end date."""
    return utc_now() if status == TaskStatus.COMPLETED else None


class _WorkflowRunFailed(Exception):
    """Raised inside the workflow scope so a failed run is rolled back."""

class HierarchyEngine:
    """Safe status changes over the main task / sub-task forest."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        notification_sink: INotificationSink,
        *,
        workflow_engine: IWorkflowEngine | None = None,
        workflow_scope: Callable[[], AbstractAsyncContextManager[Any]] | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Wire the engine.

        workflow_scope opens the unit of work a workflow run executes in (a
        savepoint on the request transaction). A failed run is rolled back to
        it so the status change that triggered the run survives.
        """
        self._task_repo = task_repo
        self._sink = notification_sink
        self.workflow_engine = workflow_engine
        self._workflow_scope = workflow_scope or nullcontext
        self._settings = settings or get_settings()

    @property
    def _sender(self) -> str:
        return resolve_sender(self._settings.notification_sender)

    # ---- Tree queries ----

    async def get_incomplete_descendants(
        self, sub_task_id: str, main_task_id: str
    ) -> list[SubTaskEntity]:
        """Return every incomplete descendant of sub_task_id, depth-first.

        Completed descendants are still walked: inconsistent data can hide an
        incomplete sub-task beneath a completed one.

        Raises:
            HierarchyCycleException: Parent links loop or nest deeper than hierarchy_max_depth.
        """
        children: dict[str | None, list[SubTaskEntity]] = defaultdict(list)
        for task in await self._task_repo.list_sub_tasks(main_task_id):
            children[task.parent_sub_task_id or None].append(task)

        max_depth = self._settings.hierarchy_max_depth
        incomplete: list[SubTaskEntity] = []

        def visit(parent_id: str, depth: int, path: frozenset[str]) -> None:
            if depth > max_depth:
                raise HierarchyCycleException(sub_task_id, max_depth)
            for child in children.get(parent_id, []):
                if child.id in path:
                    raise HierarchyCycleException(sub_task_id, depth)
                if not child.is_completed:
                    incomplete.append(child)
                visit(child.id, depth + 1, path | {child.id})

        visit(sub_task_id, 1, frozenset({sub_task_id}))
        return incomplete

    async def get_incomplete_ancestors(
        self, sub_task_id: str, main_task_id: str
    ) -> list[SubTaskEntity]:
        """Return incomplete ancestors of sub_task_id, nearest first (dependency check)."""
        by_id = {t.id: t for t in await self._task_repo.list_sub_tasks(main_task_id)}
        task = by_id.get(sub_task_id)
        if task is None:
            return []
        incomplete: list[SubTaskEntity] = []
        seen = {sub_task_id}
        parent_id = task.parent_sub_task_id
        while parent_id:
            if parent_id in seen or len(seen) > self._settings.hierarchy_max_depth:
                raise HierarchyCycleException(sub_task_id, len(seen))
            seen.add(parent_id)
            parent = by_id.get(parent_id)
            if parent is None:
                break
            if not parent.is_completed:
                incomplete.append(parent)
            parent_id = parent.parent_sub_task_id
        return incomplete

    # ---- Sub-task status ----

    @traced("hierarchy.change_sub_task_status")
    async def change_sub_task_status(
        self,
        sub_task_id: str,
        main_task_id: str,
        new_status: TaskStatus,
        remarks: str | None = None,
        *,
        force: bool = False,
        new_due_date: datetime | None = None,
    ) -> None:
        """Change a sub-task's status, then cascade, roll up, and trigger the workflow.

        Args:
            sub_task_id: Sub-task to change.
            main_task_id: Owning main task (roll-up and workflow scope).
            new_status: Target status.
            remarks: New remarks; an existing node tag is re-appended when missing.
                None leaves the stored remarks untouched.
            force: With Completed, skip the descendant check and complete every descendant.
            new_due_date: Optional new due date.

        Raises:
            IncompleteChildrenException: Completed without force and descendants are
                incomplete; nothing was written.
            ResourceNotFoundException: Sub-task or main task does not exist.
            ValidationException: The sub-task belongs to a different main task.
            HierarchyCycleException: Cyclic parent links detected.
            StoreException: A store call failed (earlier writes are not rolled back).
        """
        existing = await self._task_repo.get_sub_task(sub_task_id)
        if existing is None:
            raise ResourceNotFoundException("sub_task", sub_task_id)
        if existing.main_task_id != main_task_id:
            raise ValidationException(
                f"Sub-task {sub_task_id} does not belong to main task {main_task_id}",
                "main_task_id",
            )

        completing = new_status == TaskStatus.COMPLETED
        if completing and not force:
            blockers = await self.get_incomplete_descendants(sub_task_id, main_task_id)
            if blockers:
                logger.info(
                    "Completion of sub-task %s blocked by %d incomplete descendant(s)",
                    sub_task_id,
                    len(blockers),
                )
                raise IncompleteChildrenException(
                    sub_task_id, [b.to_blocker() for b in blockers]
                )

        await self._task_repo.update_sub_task(
            sub_task_id,
            TaskUpdate(
                status=new_status,
                remarks=(
                    existing.remarks
                    if remarks is None
                    else merge_remarks(remarks, existing.remarks)
                ),
                end_date=_end_date_for(new_status),
                due_date=new_due_date if new_due_date is not None else UNSET,
            ),
        )

        if completing and force:
            await self.force_complete_descendants(sub_task_id)

        await self.recompute_main_task_progress(main_task_id)

        if completing:
            await self._trigger_workflow(main_task_id, sub_task_id, is_sub_task=True)

    async def force_complete_descendants(
        self,
        sub_task_id: str,
        *,
        _depth: int = 1,
        _path: frozenset[str] | None = None,
    ) -> int:
        """Mark every descendant Completed (end date now), depth-first. Returns how many were written."""
        path = _path or frozenset({sub_task_id})
        if _depth > self._settings.hierarchy_max_depth:
            raise HierarchyCycleException(sub_task_id, _depth)
        written = 0
        for child in await self._task_repo.list_child_sub_tasks(sub_task_id):
            if child.id in path:
                raise HierarchyCycleException(child.id, _depth)
            await self._task_repo.update_sub_task(
                child.id,
                TaskUpdate(status=TaskStatus.COMPLETED, end_date=utc_now()),
            )
            written += 1
            written += await self.force_complete_descendants(
                child.id, _depth=_depth + 1, _path=path | {child.id}
            )
        return written

    # ---- Main task roll-up ----

    @traced("hierarchy.recompute_main_task_progress")
    async def recompute_main_task_progress(self, main_task_id: str) -> TaskProgress:
        """Roll up direct sub-tasks; auto-complete the main task at 100%.

        Only direct sub-tasks count. Auto-completion does not check deeper
        descendants (sub-task completion already guards those). A main task
        already Completed is left alone, so repeated calls are idempotent.
        """
        direct = await self._task_repo.list_direct_sub_tasks(main_task_id)
        if not direct:
            return TaskProgress(main_task_id=main_task_id, completed=0, total=0)

        completed = sum(1 for t in direct if t.is_completed)
        progress = TaskProgress(
            main_task_id=main_task_id,
            completed=completed,
            total=len(direct),
            blocker_ids=[t.id for t in direct if not t.is_completed],
        )
        if completed != len(direct):
            return progress

        main_task = await self._get_main_task(main_task_id)
        if main_task.is_completed:
            return progress

        await self._task_repo.update_main_task(
            main_task_id,
            TaskUpdate(status=TaskStatus.COMPLETED, end_date=utc_now()),
        )
        logger.info("Main task %s auto-completed (%d/%d sub-tasks)", main_task_id, completed, len(direct))
        await self._notify(
            recipients=main_task.notification_recipients(),
            subject=f"Main Task Completed: {main_task.title}",
            body=(
                "Main task has been automatically completed.\n"
                f"All {len(direct)} subtasks have been completed.\n"
                f"Task: {main_task.title}"
            ),
            main_task_id=main_task_id,
        )
        return TaskProgress(
            main_task_id=main_task_id,
            completed=completed,
            total=len(direct),
            auto_completed=True,
        )

    # ---- Creation ----

    @traced("hierarchy.create_sub_task")
    async def create_sub_task(self, data: SubTaskCreate) -> str:
        """Create a sub-task, notify its assignee, start the main task, roll up.

        Raises:
            ResourceNotFoundException: Main task (or parent sub-task) does not exist.
            ValidationException: Parent sub-task belongs to another main task.
        """
        main_task = await self._get_main_task(data.main_task_id)
        if data.parent_sub_task_id:
            parent = await self._task_repo.get_sub_task(data.parent_sub_task_id)
            if parent is None:
                raise ResourceNotFoundException("sub_task", data.parent_sub_task_id)
            if parent.main_task_id != data.main_task_id:
                raise ValidationException(
                    "Parent sub-task belongs to a different main task",
                    field="parent_sub_task_id",
                )

        sub_task_id = await self._task_repo.create_sub_task(data)
        created = await self._task_repo.get_sub_task(sub_task_id)
        assignee_email = created.assignee_email if created else None
        await self._notify(
            recipients=[assignee_email] if assignee_email else [],
            subject=f"Subtask Created: {data.title}",
            body=(
                "New Subtask Created\n"
                f"Subtask: {data.title or 'N/A'}\n"
                f"Description: {data.description or 'N/A'}\n"
                f"Assigned To: {assignee_email or 'N/A'}\n"
                f"Status: {data.status.value}"
            ),
            main_task_id=data.main_task_id,
            sub_task_id=sub_task_id,
        )

        if not data.parent_sub_task_id and main_task.status in (TaskStatus.NOT_STARTED, None, ""):
            await self._task_repo.update_main_task(
                data.main_task_id, TaskUpdate(status=TaskStatus.IN_PROGRESS)
            )

        await self.recompute_main_task_progress(data.main_task_id)
        return sub_task_id

    # ---- Main task status ----

    @traced("hierarchy.change_main_task_status")
    async def change_main_task_status(
        self,
        main_task_id: str,
        new_status: TaskStatus,
        remarks: str | None = None,
    ) -> None:
        """Set a main task's status directly (tasks without sub-tasks).

        Remarks keep the stored node tag; end date is set on Completed and
        cleared otherwise. Completed triggers the main-task-scope workflow.
        """
        existing = await self._get_main_task(main_task_id)
        await self._task_repo.update_main_task(
            main_task_id,
            TaskUpdate(
                status=new_status,
                remarks=(
                    existing.remarks
                    if remarks is None
                    else merge_remarks(remarks, existing.remarks)
                ),
                end_date=_end_date_for(new_status),
            ),
        )
        if new_status == TaskStatus.COMPLETED:
            await self._trigger_workflow(main_task_id, main_task_id, is_sub_task=False)

    # ---- Logged field updates ----

    @traced("hierarchy.update_sub_task_field")
    async def update_sub_task_field(
        self,
        sub_task_id: str,
        main_task_id: str,
        field: TaskField,
        new_value: Any,
        remark: str,
    ) -> None:
        """Update one sub-task field and record the change for the (new) assignee.

        Status delegates to change_sub_task_status (without force). Assignee
        expects an email and resolves it to a user id.
        """
        existing = await self._task_repo.get_sub_task(sub_task_id)
        if existing is None:
            raise ResourceNotFoundException("sub_task", sub_task_id)

        target_email: str | None = None
        if field == TaskField.DUE_DATE:
            await self._task_repo.update_sub_task(sub_task_id, TaskUpdate(due_date=new_value))
            message = f"Due Date changed. {remark}"
        elif field == TaskField.ASSIGNEE:
            user_id = await self._task_repo.resolve_identity(new_value)
            await self._task_repo.update_sub_task(sub_task_id, TaskUpdate(assignee_id=user_id))
            target_email = new_value
            message = f"Assignee changed to {new_value}. {remark}"
        elif field == TaskField.DESCRIPTION:
            await self._task_repo.update_sub_task(sub_task_id, TaskUpdate(description=new_value))
            message = f"Description updated. {remark}"
        elif field == TaskField.STATUS:
            await self.change_sub_task_status(
                sub_task_id, main_task_id, TaskStatus(new_value), remark
            )
            message = f"Status updated. {remark}"
        else:
            raise ValidationException(f"Unsupported sub-task field: {field}", field="field")

        target_email = target_email or existing.assignee_email
        await self._notify(
            recipients=[target_email] if target_email else [],
            subject=f"Subtask Updated: {_FIELD_LABELS[field]} Change",
            body=message,
            main_task_id=main_task_id,
            sub_task_id=sub_task_id,
        )
        if field != TaskField.STATUS:
            await self.recompute_main_task_progress(main_task_id)

    @traced("hierarchy.update_main_task_field")
    async def update_main_task_field(
        self,
        main_task_id: str,
        field: TaskField,
        new_value: Any,
        remark: str,
    ) -> None:
        """Update one main task field (due date, description, status) and notify assignee and creator."""
        if field == TaskField.DUE_DATE:
            await self._get_main_task(main_task_id)
            await self._task_repo.update_main_task(main_task_id, TaskUpdate(due_date=new_value))
            message = f"Due Date changed. {remark}"
        elif field == TaskField.DESCRIPTION:
            await self._get_main_task(main_task_id)
            await self._task_repo.update_main_task(main_task_id, TaskUpdate(description=new_value))
            message = f"Description updated. {remark}"
        elif field == TaskField.STATUS:
            await self.change_main_task_status(main_task_id, TaskStatus(new_value), remark)
            message = f"Status updated. {remark}"
        else:
            raise ValidationException(f"Unsupported main task field: {field}", field="field")

        main_task = await self._get_main_task(main_task_id)
        await self._notify(
            recipients=main_task.notification_recipients(),
            subject=f"Main Task Updated: {_FIELD_LABELS[field]} Change",
            body=message,
            main_task_id=main_task_id,
        )

    # ---- Helpers ----

    async def _get_main_task(self, main_task_id: str) -> MainTaskEntity:
        main_task = await self._task_repo.get_main_task(main_task_id)
        if main_task is None:
            raise ResourceNotFoundException("main_task", main_task_id)
        return main_task

    async def _notify(
        self,
        *,
        recipients: list[str],
        subject: str,
        body: str,
        main_task_id: str,
        sub_task_id: str | None = None,
    ) -> None:
        if not recipients:
            logger.info("No recipients for notification %r; not recorded", subject)
            return
        await self._sink.record(
            subject=subject,
            body=body,
            recipients=recipients,
            sender=self._sender,
            main_task_id=main_task_id,
            sub_task_id=sub_task_id,
        )

    async def _trigger_workflow(
        self, main_task_id: str, completed_task_id: str, *, is_sub_task: bool
    ) -> None:
        """Best-effort: the status change stands whatever the workflow does."""
        if self.workflow_engine is None:
            return
        try:
            async with self._workflow_scope():
                result = await self.workflow_engine.on_task_completed(
                    main_task_id, completed_task_id, is_sub_task=is_sub_task
                )
                if getattr(result, "status", None) == WorkflowRunStatus.FAILED:
                    raise _WorkflowRunFailed(result.error_message)
        except _WorkflowRunFailed as e:
            logger.warning(
                "Workflow run for task %s failed and was rolled back: %s",
                completed_task_id,
                e,
            )
        except Exception:
            logger.exception(
                "Workflow trigger failed after status change (main_task_id=%s, task_id=%s)",
                main_task_id,
                completed_task_id,
            )
