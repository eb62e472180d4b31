"""Workflow engine: resume a workflow graph when a tagged task completes (implements IWorkflowEngine).

Each call re-derives everything: node tag from the completed task's
remarks, graph title from the task scope, graph from the store. Nothing
about a traversal is persisted except the node tags planted on tasks that
Task nodes create.

No locking or idempotency: two callers completing the same task walk the
graph twice (last write wins in the stores).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, assert_never

from taskflow.application.dtos.task import MainTaskCreate, SubTaskCreate
from taskflow.application.services.workflow_graph_codec import parse_workflow_graph
from taskflow.core.config import Settings, get_settings
from taskflow.domain.entities.workflow import (
    AlertNode,
    ConditionNode,
    EmailNode,
    TaskNode,
    WorkflowGraph,
)
from taskflow.domain.exceptions import WorkflowCycleException, WorkflowGraphParseException
from taskflow.domain.value_objects.node_tag import NodeTag
from taskflow.shared.context import get_current_user_email, resolve_sender
from taskflow.shared.enums import NotifyWho, TaskStatus, WorkflowRunStatus
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import add_span_event, traced
from taskflow.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from taskflow.application.interfaces.repositories import (
        ITaskRepository,
        IWorkflowRepository,
    )
    from taskflow.application.interfaces.services import INotificationSink

logger = get_logger(__name__)

DEFAULT_ALERT_BODY = "System workflow alert triggered."
DEFAULT_EMAIL_SUBJECT = "Workflow Notification"
DEFAULT_EMAIL_BODY = "The previous step has been completed."
WORKFLOW_CATEGORY = "Workflow"
WORKFLOW_PROJECT = "Workflow Task"


@dataclass
class WorkflowRunResult:
    """Summary of one traversal: what ran, what was skipped, and why it stopped."""

    status: WorkflowRunStatus
    reason: str | None = None
    workflow_title: str | None = None
    start_node_id: str | None = None
    actions: list[dict[str, Any]] = field(default_factory=list)
    error_message: str | None = None

    @property
    def created_task_ids(self) -> list[str]:
        return [
            a["task_id"]
            for a in self.actions
            if a.get("action") == "create_task" and a.get("status") == "success"
        ]


@dataclass
class _Traversal:
    """Per-call context passed down the recursive walk."""

    graph: WorkflowGraph
    main_task_id: str
    completed_task_id: str
    is_sub_task: bool
    remarks: str
    assignee_email: str | None
    owner_email: str | None
    sender: str
    result: WorkflowRunResult


class WorkflowEngine:
    """Walks the workflow graph downstream of a completed task's node tag."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        workflow_repo: IWorkflowRepository,
        notification_sink: INotificationSink,
        *,
        create_sub_task: Callable[[SubTaskCreate], Awaitable[str]] | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Build the engine.

        Args:
            task_repo: Task store (reads the completed task, creates main tasks).
            workflow_repo: Workflow definition store.
            notification_sink: Records Alert and Email notifications.
            create_sub_task: Sub-task factory; the hierarchy engine's create_sub_task so
                workflow-created sub-tasks get the same roll-up and notifications. Falls
                back to task_repo.create_sub_task when not given.
            settings: Overrides get_settings() (tests).
        """
        self._task_repo = task_repo
        self._workflow_repo = workflow_repo
        self._sink = notification_sink
        self._create_sub_task = create_sub_task or task_repo.create_sub_task
        self._settings = settings or get_settings()

    @traced("workflow.on_task_completed")
    async def on_task_completed(
        self,
        main_task_id: str,
        completed_task_id: str,
        *,
        is_sub_task: bool,
    ) -> WorkflowRunResult:
        """Resume the workflow at the completed task's node tag. Never raises.

        Returns:
            WorkflowRunResult; SKIPPED when there is no tag, graph, or parsable blob,
            FAILED when the walk raised (actions already performed are kept in the log).
        """
        result = WorkflowRunResult(status=WorkflowRunStatus.SKIPPED)
        try:
            await self._run(main_task_id, completed_task_id, is_sub_task, result)
        except Exception as e:
            logger.exception(
                "Workflow step failed (main_task_id=%s, completed_task_id=%s, is_sub_task=%s)",
                main_task_id,
                completed_task_id,
                is_sub_task,
            )
            result.status = WorkflowRunStatus.FAILED
            result.error_message = str(e)
        return result

    async def _run(
        self,
        main_task_id: str,
        completed_task_id: str,
        is_sub_task: bool,
        result: WorkflowRunResult,
    ) -> None:
        # Resolve: completed task -> node tag
        task = (
            await self._task_repo.get_sub_task(completed_task_id)
            if is_sub_task
            else await self._task_repo.get_main_task(completed_task_id)
        )
        if task is None:
            result.reason = "task_not_found"
            return
        tag = NodeTag.find(task.remarks)
        if tag is None:
            result.reason = "no_node_tag"
            return
        result.start_node_id = tag.node_id

        # Resolve: scope -> graph title
        title = await self._resolve_title(main_task_id, is_sub_task)
        if not title:
            result.reason = "no_workflow"
            return
        result.workflow_title = title

        # Load graph
        definition = await self._workflow_repo.get_by_title(title)
        if definition is None or not definition.graph_json:
            result.reason = "no_workflow"
            return
        try:
            graph = parse_workflow_graph(definition.graph_json, title=title)
        except WorkflowGraphParseException as e:
            logger.warning("Workflow %r is not parsable: %s", title, e.details.get("reason"))
            result.reason = "unparsable_workflow"
            return

        traversal = _Traversal(
            graph=graph,
            main_task_id=main_task_id,
            completed_task_id=completed_task_id,
            is_sub_task=is_sub_task,
            remarks=task.remarks or "",
            assignee_email=task.assignee_email or None,
            owner_email=task.creator_email or None,
            sender=resolve_sender(self._settings.notification_sender),
            result=result,
        )
        logger.info(
            "Workflow %r resuming at node %s for %s %s",
            title,
            tag.node_id,
            "sub-task" if is_sub_task else "main task",
            completed_task_id,
        )
        result.status = WorkflowRunStatus.COMPLETED
        await self._walk(traversal, tag.node_id, frozenset({tag.node_id}), depth=1)

    async def _resolve_title(self, main_task_id: str, is_sub_task: bool) -> str | None:
        """Sub-tasks use the per-main-task graph; main tasks use the latest active graph."""
        if is_sub_task:
            return f"{self._settings.sub_task_workflow_title_prefix}{main_task_id}"
        active = await self._workflow_repo.get_active()
        return active.title if active else None

    async def _walk(
        self,
        t: _Traversal,
        node_id: str,
        path: frozenset[str],
        depth: int,
    ) -> None:
        """Process every edge leaving node_id, in stored order."""
        if depth > self._settings.workflow_max_depth:
            raise WorkflowCycleException(node_id, depth)
        for edge in t.graph.outgoing(node_id):
            node = t.graph.node(edge.target)
            if node is None:
                continue
            logger.debug("Workflow checking node %s (%s: %r)", node.id, node.kind.value, node.label)
            match node:
                case ConditionNode():
                    if not node.passes(t.remarks):
                        logger.info("Workflow condition %r not met in remarks; skipping branch", node.keyword)
                        t.result.actions.append(
                            {"action": "condition", "node_id": node.id, "status": "skipped"}
                        )
                        continue
                    self._check_path(node.id, path, depth)
                    t.result.actions.append(
                        {"action": "condition", "node_id": node.id, "status": "passed"}
                    )
                    await self._walk(t, node.id, path | {node.id}, depth + 1)
                case AlertNode():
                    self._check_path(node.id, path, depth)
                    await self._fire_alert(t, node)
                    await self._walk(t, node.id, path | {node.id}, depth + 1)
                case TaskNode():
                    await self._create_task(t, node)
                case EmailNode():
                    await self._send_email(t, node)
                case _:
                    assert_never(node)

    @staticmethod
    def _check_path(node_id: str, path: frozenset[str], depth: int) -> None:
        """Fail closed before a pass-through node on the current path acts again."""
        if node_id in path:
            raise WorkflowCycleException(node_id, depth)

    async def _fire_alert(self, t: _Traversal, node: AlertNode) -> None:
        recipients: list[str] = []
        if node.notify_who in (NotifyWho.ASSIGNEE, NotifyWho.BOTH) and t.assignee_email:
            recipients.append(t.assignee_email)
        if (
            node.notify_who in (NotifyWho.OWNER, NotifyWho.BOTH)
            and t.owner_email
            and t.owner_email not in recipients
        ):
            recipients.append(t.owner_email)
        if not recipients:
            logger.info("Workflow alert %s has no resolvable recipients", node.id)
            t.result.actions.append({"action": "alert", "node_id": node.id, "status": "skipped"})
            return
        record_id = await self._sink.record(
            subject=node.email_subject or f"Alert: {node.label}",
            body=node.description or DEFAULT_ALERT_BODY,
            recipients=recipients,
            sender=t.sender,
            main_task_id=t.main_task_id,
            sub_task_id=t.completed_task_id if t.is_sub_task else None,
        )
        add_span_event("workflow.alert", {"node_id": node.id})
        t.result.actions.append(
            {"action": "alert", "node_id": node.id, "status": "success", "notification_id": record_id}
        )

    async def _create_task(self, t: _Traversal, node: TaskNode) -> None:
        """Create the follow-on task. The walk stops here until that task completes."""
        if not node.assignee:
            logger.info("Workflow task node %s has no assignee; nothing created", node.id)
            t.result.actions.append({"action": "create_task", "node_id": node.id, "status": "skipped"})
            return
        try:
            tag_text = NodeTag(node.id).format()
        except ValueError:
            logger.warning("Workflow node id %r cannot be tagged; created task will not resume the walk", node.id)
            tag_text = ""
        user_id = await self._task_repo.resolve_identity(node.assignee)
        # Created tasks are authored by whoever completed the previous step.
        actor = get_current_user_email()
        creator_id = await self._task_repo.resolve_identity(actor) if actor else None
        if t.is_sub_task:
            task_id = await self._create_sub_task(
                SubTaskCreate(
                    main_task_id=t.main_task_id,
                    title=node.label,
                    description=node.description,
                    remarks=tag_text,
                    status=TaskStatus.NOT_STARTED,
                    due_date=utc_now(),
                    assignee_id=user_id,
                    creator_id=creator_id,
                    category=WORKFLOW_CATEGORY,
                )
            )
        else:
            task_id = await self._task_repo.create_main_task(
                MainTaskCreate(
                    title=node.label,
                    description=node.description,
                    remarks=tag_text if self._settings.plant_main_task_node_tag else "",
                    status=TaskStatus.NOT_STARTED,
                    assignee_id=user_id,
                    creator_id=creator_id,
                    project=WORKFLOW_PROJECT,
                )
            )
        add_span_event("workflow.create_task", {"node_id": node.id})
        t.result.actions.append(
            {"action": "create_task", "node_id": node.id, "status": "success", "task_id": task_id}
        )

    async def _send_email(self, t: _Traversal, node: EmailNode) -> None:
        if not node.assignee:
            t.result.actions.append({"action": "email", "node_id": node.id, "status": "skipped"})
            return
        record_id = await self._sink.record(
            subject=node.email_subject or DEFAULT_EMAIL_SUBJECT,
            body=node.description or DEFAULT_EMAIL_BODY,
            recipients=[node.assignee],
            sender=t.sender,
            main_task_id=t.main_task_id,
            sub_task_id=t.completed_task_id if t.is_sub_task else None,
        )
        t.result.actions.append(
            {"action": "email", "node_id": node.id, "status": "success", "notification_id": record_id}
        )
