"""Tests for domain exceptions (error_code, message, details)."""

from taskflow.domain.exceptions import (
    HierarchyCycleException,
    IncompleteChildrenException,
    ResourceNotFoundException,
    StoreException,
    TaskflowException,
    ValidationException,
    WorkflowCycleException,
    WorkflowGraphParseException,
)


def test_taskflow_exception_default_error_code() -> None:
    """Base TaskflowException uses class name as error_code when not provided."""
    exc = TaskflowException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "TaskflowException"
    assert exc.details == {}


def test_to_dict_shape() -> None:
    exc = TaskflowException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception() -> None:
    exc = ValidationException("Invalid parent", field="parent_sub_task_id")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "parent_sub_task_id"}
    assert ValidationException("Invalid").details == {}


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("sub_task", "s1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.details == {"resource_type": "sub_task", "resource_id": "s1"}
    assert "s1" in exc.message


def test_incomplete_children_exception_carries_blockers() -> None:
    """Blockers are exposed both as a property and in details for the 409 body."""
    blockers = [{"id": "s2", "title": "Child", "status": "Not Started", "assignee_email": None, "due_date": None}]
    exc = IncompleteChildrenException("s1", blockers)
    assert exc.error_code == "INCOMPLETE_CHILDREN"
    assert exc.blockers == blockers
    assert exc.details["sub_task_id"] == "s1"
    assert "1 incomplete" in exc.message


def test_cycle_exceptions() -> None:
    assert HierarchyCycleException("s1", 64).details == {"sub_task_id": "s1", "depth": 64}
    assert WorkflowCycleException("3", 2).error_code == "WORKFLOW_CYCLE"


def test_parse_exception_title_optional() -> None:
    assert WorkflowGraphParseException("bad").details == {"reason": "bad"}
    assert WorkflowGraphParseException("bad", "TASK_WF_1").details["title"] == "TASK_WF_1"


def test_store_exception() -> None:
    exc = StoreException("update_sub_task", "timeout")
    assert exc.error_code == "STORE_ERROR"
    assert exc.details == {"operation": "update_sub_task"}
    assert "timeout" in exc.message
