"""Domain exceptions for the Taskflow application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class TaskflowException(Exception):
    """Base exception for all Taskflow application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body used by the HTTP exception handler."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskflowException):
    """Raised when input validation fails (e.g. unknown field or bad value)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(TaskflowException):
    """Raised when a requested task, sub-task, workflow or identity is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'main_task', 'sub_task').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class IncompleteChildrenException(TaskflowException):
    """Raised when completing a sub-task that still has incomplete descendants.

    Recoverable: the caller shows the blockers and either retries with
    force=True (cascade) or cancels. No record was mutated.
    """

    def __init__(self, sub_task_id: str, blockers: list[dict[str, Any]]) -> None:
        """Initialize with the sub-task and its blocking descendants.

        Args:
            sub_task_id: Sub-task whose completion was refused.
            blockers: One dict per incomplete descendant (id, title, status,
                assignee_email, due_date).
        """
        super().__init__(
            f"Sub-task {sub_task_id} has {len(blockers)} incomplete descendant(s)",
            "INCOMPLETE_CHILDREN",
            {"sub_task_id": sub_task_id, "blockers": blockers},
        )

    @property
    def blockers(self) -> list[dict[str, Any]]:
        """Blocking descendants, in tree-walk order."""
        return self.details["blockers"]


class HierarchyCycleException(TaskflowException):
    """Raised when a sub-task walk exceeds the depth guard (cyclic parent chain)."""

    def __init__(self, sub_task_id: str, depth: int) -> None:
        super().__init__(
            f"Sub-task hierarchy under {sub_task_id} exceeds depth {depth}; "
            "parent links are probably cyclic",
            "HIERARCHY_CYCLE",
            {"sub_task_id": sub_task_id, "depth": depth},
        )


class WorkflowCycleException(TaskflowException):
    """Raised when a workflow walk revisits a node on its own path or runs too deep."""

    def __init__(self, node_id: str, depth: int) -> None:
        super().__init__(
            f"Workflow walk stopped at node {node_id} (depth {depth})",
            "WORKFLOW_CYCLE",
            {"node_id": node_id, "depth": depth},
        )


class WorkflowGraphParseException(TaskflowException):
    """Raised when a stored workflow blob or node tag cannot be parsed."""

    def __init__(self, reason: str, title: str | None = None) -> None:
        details: dict[str, Any] = {"reason": reason}
        if title:
            details["title"] = title
        super().__init__(
            f"Invalid workflow graph: {reason}",
            "WORKFLOW_PARSE_ERROR",
            details,
        )


class StoreException(TaskflowException):
    """Raised when a persistence call fails (transport, constraint, driver error)."""

    def __init__(self, operation: str, reason: str) -> None:
        """Initialize with the failing store operation.

        Args:
            operation: Store operation name (e.g. 'update_sub_task').
            reason: Underlying error text.
        """
        super().__init__(
            f"Store operation '{operation}' failed: {reason}",
            "STORE_ERROR",
            {"operation": operation},
        )
