"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from taskflow.infrastructure.
"""

from taskflow.application.interfaces.repositories import (
    ITaskRepository,
    IWorkflowRepository,
)
from taskflow.application.interfaces.services import (
    INotificationSink,
    IWorkflowEngine,
)

__all__ = [
    "INotificationSink",
    "ITaskRepository",
    "IWorkflowEngine",
    "IWorkflowRepository",
]
