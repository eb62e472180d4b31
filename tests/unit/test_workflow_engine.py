"""Tests for WorkflowEngine: tag resolution, condition gates, alerts, task creation, failure isolation."""

import pytest

from taskflow.application.services import WorkflowEngine
from taskflow.domain.exceptions import StoreException
from taskflow.domain.value_objects import NodeTag
from taskflow.shared.context import set_current_user
from taskflow.shared.enums import TaskStatus, WorkflowRunStatus
from tests.fakes import graph


@pytest.fixture
def main_task(task_repo):
    return task_repo.add_main_task(
        "Contract", assignee="owner@example.com", creator="creator@example.com"
    )


def _sub_task_flow(workflow_repo, main_task_id: str, nodes, edges) -> None:
    workflow_repo.add(f"TASK_WF_{main_task_id}", graph(nodes, edges))


CONDITION_FLOW = (
    [
        (1, "Task", {"label": "Draft", "assignee": "drafter@example.com"}),
        (2, "Condition", {"label": "If urgent"}),
        (3, "Task", {"label": "Expedite", "assignee": "fast@example.com"}),
    ],
    [(1, 2), (2, 3)],
)


def _created_sub_tasks(task_repo, main_task_id: str, exclude: set[str]):
    return [
        t for t in task_repo.sub_tasks.values()
        if t.main_task_id == main_task_id and t.id not in exclude
    ]


# ---- Condition gate ----


async def test_condition_not_met_creates_nothing(
    workflow_engine, task_repo, workflow_repo, main_task
) -> None:
    _sub_task_flow(workflow_repo, main_task.id, *CONDITION_FLOW)
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED,
        remarks="not urgent, please close [WF_NODE:1]",
    )

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert result.status is WorkflowRunStatus.COMPLETED
    assert result.created_task_ids == []
    assert _created_sub_tasks(task_repo, main_task.id, {"done"}) == []


async def test_condition_met_creates_one_tagged_sub_task(
    workflow_engine, task_repo, workflow_repo, sink, main_task
) -> None:
    _sub_task_flow(workflow_repo, main_task.id, *CONDITION_FLOW)
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED,
        remarks="URGENT please expedite [WF_NODE:1]",
    )

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    [created] = _created_sub_tasks(task_repo, main_task.id, {"done"})
    assert result.created_task_ids == [created.id]
    assert created.title == "Expedite"
    assert NodeTag.find(created.remarks) == NodeTag("3")
    assert created.status is TaskStatus.NOT_STARTED
    assert created.due_date is not None
    assert created.category == "Workflow"
    assert created.assignee_id == task_repo.users["fast@example.com"]
    # Created through the hierarchy engine: assignee gets the created notification.
    assert "Subtask Created: Expedite" in sink.subjects()


async def test_sibling_conditions_are_not_exclusive(
    workflow_engine, task_repo, workflow_repo, main_task
) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {"label": "Start"}),
            (2, "Condition", {"label": "If legal"}),
            (3, "Condition", {"label": "If finance"}),
            (4, "Task", {"label": "Legal review", "assignee": "legal@example.com"}),
            (5, "Task", {"label": "Finance review", "assignee": "fin@example.com"}),
        ],
        [(1, 2), (1, 3), (2, 4), (3, 5)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED,
        remarks="needs Legal and Finance sign-off [WF_NODE:1]",
    )

    await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    titles = [t.title for t in _created_sub_tasks(task_repo, main_task.id, {"done"})]
    assert titles == ["Legal review", "Finance review"]


# ---- Alert and Email ----


async def test_alert_never_blocks_descent_into_email(
    workflow_engine, task_repo, workflow_repo, sink, main_task
) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {"label": "Sign"}),
            (2, "Alert", {"label": "Signed", "notifyWho": "both"}),
            (3, "Email", {"label": "Notify legal", "assignee": "legal@example.com"}),
        ],
        [(1, 2), (2, 3)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED, remarks="[WF_NODE:1]",
        assignee="signer@example.com", creator="requester@example.com",
    )

    await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    alert, email = sink.records
    assert alert.subject == "Alert: Signed"
    assert alert.body == "System workflow alert triggered."
    assert alert.recipients == ["signer@example.com", "requester@example.com"]
    assert alert.sub_task_id == "done"
    assert email.subject == "Workflow Notification"
    assert email.recipients == ["legal@example.com"]


async def test_alert_without_recipients_still_descends(
    workflow_engine, task_repo, workflow_repo, sink, main_task
) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {"label": "Sign"}),
            (2, "Alert", {"label": "Owner ping", "notifyWho": "owner"}),
            (3, "Email", {"label": "FYI", "assignee": "fyi@example.com", "emailSubject": "Signed"}),
        ],
        [(1, 2), (2, 3)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED, remarks="[WF_NODE:1]"
    )

    await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    [email] = sink.records
    assert email.subject == "Signed"


async def test_email_and_task_nodes_without_assignee_are_skipped(
    workflow_engine, task_repo, workflow_repo, sink, main_task
) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [(1, "Task", {}), (2, "Email", {"label": "x"}), (3, "Task", {"label": "y"})],
        [(1, 2), (1, 3)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED, remarks="[WF_NODE:1]"
    )

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert sink.records == []
    assert result.created_task_ids == []
    assert [a["status"] for a in result.actions] == ["skipped", "skipped"]


async def test_task_node_does_not_recurse(
    workflow_engine, task_repo, workflow_repo, sink, main_task
) -> None:
    """The walk pauses at a Task node until the created task completes."""
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {}),
            (2, "Task", {"label": "Next", "assignee": "next@example.com"}),
            (3, "Email", {"label": "after", "assignee": "later@example.com"}),
        ],
        [(1, 2), (2, 3)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED, remarks="[WF_NODE:1]"
    )

    await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert "Workflow Notification" not in sink.subjects()


async def test_completing_created_task_resumes_walk(
    hierarchy, task_repo, workflow_repo, sink, main_task
) -> None:
    """End to end: the planted tag resumes the graph when the created task completes."""
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {}),
            (2, "Task", {"label": "Next", "assignee": "next@example.com"}),
            (3, "Email", {"label": "after", "assignee": "later@example.com"}),
        ],
        [(1, 2), (2, 3)],
    )
    task_repo.add_sub_task(main_task.id, id="first", remarks="[WF_NODE:1]")

    await hierarchy.change_sub_task_status("first", main_task.id, TaskStatus.COMPLETED, "ok")
    [created] = _created_sub_tasks(task_repo, main_task.id, {"first"})
    await hierarchy.change_sub_task_status(created.id, main_task.id, TaskStatus.COMPLETED, "done too")

    assert task_repo.sub_tasks[created.id].remarks == "done too [WF_NODE:2]"
    assert "Workflow Notification" in sink.subjects()
    assert task_repo.main_tasks[main_task.id].status is TaskStatus.COMPLETED


async def test_created_task_is_authored_by_acting_user(
    hierarchy, task_repo, workflow_repo, sink, main_task
) -> None:
    """An owner alert further down the chain reaches whoever completed the previous step."""
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {}),
            (2, "Task", {"label": "Next", "assignee": "next@example.com"}),
            (3, "Alert", {"label": "Owner ping", "notifyWho": "owner"}),
        ],
        [(1, 2), (2, 3)],
    )
    task_repo.add_sub_task(main_task.id, id="first", remarks="[WF_NODE:1]")
    set_current_user("actor@example.com")

    await hierarchy.change_sub_task_status("first", main_task.id, TaskStatus.COMPLETED)
    [created] = _created_sub_tasks(task_repo, main_task.id, {"first"})
    assert created.creator_id == task_repo.users["actor@example.com"]

    await hierarchy.change_sub_task_status(created.id, main_task.id, TaskStatus.COMPLETED)

    [alert] = [r for r in sink.records if r.subject == "Alert: Owner ping"]
    assert alert.recipients == ["actor@example.com"]


async def test_created_task_has_no_creator_without_acting_user(
    workflow_engine, task_repo, workflow_repo, main_task
) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [(1, "Task", {}), (2, "Task", {"label": "Next", "assignee": "next@example.com"})],
        [(1, 2)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED, remarks="[WF_NODE:1]"
    )

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    [created_id] = result.created_task_ids
    assert task_repo.sub_tasks[created_id].creator_id is None


async def test_created_task_ids_ignore_skipped_task_nodes(
    workflow_engine, task_repo, workflow_repo, main_task
) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {}),
            (2, "Task", {"label": "Unassigned"}),
            (3, "Task", {"label": "Assigned", "assignee": "a@example.com"}),
        ],
        [(1, 2), (1, 3)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", status=TaskStatus.COMPLETED, remarks="[WF_NODE:1]"
    )

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    [created_id] = result.created_task_ids
    assert task_repo.sub_tasks[created_id].title == "Assigned"


# ---- Main-task scope ----


async def test_main_task_scope_uses_latest_active_graph_without_tag(
    workflow_engine, task_repo, workflow_repo
) -> None:
    workflow_repo.add("Old", graph([(1, "Task", {}), (2, "Task", {"label": "Old", "assignee": "o@example.com"})], [(1, 2)]))
    workflow_repo.add("Current", graph([(1, "Task", {}), (2, "Task", {"label": "Follow-up", "assignee": "f@example.com"})], [(1, 2)]))
    workflow_repo.add("Draft", graph([], []), is_active=False)
    main = task_repo.add_main_task(remarks="[WF_NODE:1]", status=TaskStatus.COMPLETED)

    result = await workflow_engine.on_task_completed(main.id, main.id, is_sub_task=False)

    assert result.workflow_title == "Current"
    [created_id] = result.created_task_ids
    created = task_repo.main_tasks[created_id]
    assert created.title == "Follow-up"
    assert created.remarks == ""
    assert created.due_date is None


async def test_main_task_scope_plants_tag_when_enabled(
    task_repo, workflow_repo, sink, settings
) -> None:
    engine = WorkflowEngine(
        task_repo, workflow_repo, sink,
        settings=settings.model_copy(update={"plant_main_task_node_tag": True}),
    )
    workflow_repo.add("Current", graph([(1, "Task", {}), (2, "Task", {"label": "F", "assignee": "f@example.com"})], [(1, 2)]))
    main = task_repo.add_main_task(remarks="[WF_NODE:1]")

    result = await engine.on_task_completed(main.id, main.id, is_sub_task=False)

    assert task_repo.main_tasks[result.created_task_ids[0]].remarks == "[WF_NODE:2]"


# ---- No-op and failure paths ----


async def test_untagged_task_is_a_no_op(workflow_engine, task_repo, workflow_repo, main_task) -> None:
    _sub_task_flow(workflow_repo, main_task.id, *CONDITION_FLOW)
    done = task_repo.add_sub_task(main_task.id, id="done", remarks="plain remarks")

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert result.status is WorkflowRunStatus.SKIPPED
    assert result.reason == "no_node_tag"


async def test_missing_graph_is_a_no_op(workflow_engine, task_repo, main_task) -> None:
    done = task_repo.add_sub_task(main_task.id, id="done", remarks="[WF_NODE:1]")

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert (result.status, result.reason) == (WorkflowRunStatus.SKIPPED, "no_workflow")


async def test_no_active_graph_for_main_task(workflow_engine, task_repo) -> None:
    main = task_repo.add_main_task(remarks="[WF_NODE:1]")

    result = await workflow_engine.on_task_completed(main.id, main.id, is_sub_task=False)

    assert result.reason == "no_workflow"


async def test_unparsable_graph_is_a_no_op(workflow_engine, task_repo, workflow_repo, main_task) -> None:
    workflow_repo.add(f"TASK_WF_{main_task.id}", "{not json")
    done = task_repo.add_sub_task(main_task.id, id="done", remarks="[WF_NODE:1]")

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert (result.status, result.reason) == (WorkflowRunStatus.SKIPPED, "unparsable_workflow")


async def test_store_error_is_swallowed(workflow_engine, task_repo, workflow_repo, main_task) -> None:
    workflow_repo.fail_with = StoreException("get_workflow_by_title", "timeout")
    done = task_repo.add_sub_task(main_task.id, id="done", remarks="[WF_NODE:1]")

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert result.status is WorkflowRunStatus.FAILED
    assert "timeout" in result.error_message


async def test_lookup_failure_leaves_status_change_committed(
    hierarchy, task_repo, workflow_repo, main_task
) -> None:
    workflow_repo.fail_with = StoreException("get_workflow_by_title", "timeout")
    task_repo.add_sub_task(main_task.id, id="t", remarks="[WF_NODE:1]")

    await hierarchy.change_sub_task_status("t", main_task.id, TaskStatus.COMPLETED)

    assert task_repo.sub_tasks["t"].status is TaskStatus.COMPLETED


async def test_cyclic_graph_fails_closed(workflow_engine, task_repo, workflow_repo, sink, main_task) -> None:
    """Alert -> Alert loops stop at the revisit; earlier actions are kept."""
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [
            (1, "Task", {}),
            (2, "Alert", {"label": "A", "notifyWho": "assignee"}),
            (3, "Alert", {"label": "B", "notifyWho": "assignee"}),
        ],
        [(1, 2), (2, 3), (3, 2)],
    )
    done = task_repo.add_sub_task(
        main_task.id, id="done", remarks="[WF_NODE:1]", assignee="me@example.com"
    )

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert result.status is WorkflowRunStatus.FAILED
    assert sink.subjects() == ["Alert: A", "Alert: B"]


async def test_task_node_loop_back_is_allowed(workflow_engine, task_repo, workflow_repo, main_task) -> None:
    """A Task node pointing back upstream is a recurring task, not a cycle."""
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [(1, "Task", {"label": "Review", "assignee": "r@example.com"})],
        [(1, 1)],
    )
    done = task_repo.add_sub_task(main_task.id, id="done", remarks="[WF_NODE:1]")

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    assert result.status is WorkflowRunStatus.COMPLETED
    assert len(result.created_task_ids) == 1


async def test_designer_node_ids_resume(workflow_engine, task_repo, workflow_repo, main_task) -> None:
    _sub_task_flow(
        workflow_repo,
        main_task.id,
        [("node-1", "Task", {}), ("node-2", "Task", {"label": "B", "assignee": "b@example.com"})],
        [("node-1", "node-2")],
    )
    done = task_repo.add_sub_task(main_task.id, id="done", remarks="[WF_NODE:node-1]")

    result = await workflow_engine.on_task_completed(main_task.id, done.id, is_sub_task=True)

    created = task_repo.sub_tasks[result.created_task_ids[0]]
    assert created.remarks == "[WF_NODE:node-2]"
