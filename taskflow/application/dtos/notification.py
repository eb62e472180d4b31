"""DTO for notification records (created, never mutated)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NotificationRecord:
    """Outbound message queued for out-of-process delivery."""

    id: str
    subject: str
    body: str
    recipients: list[str]
    sender: str
    main_task_id: str
    sub_task_id: str | None
    created_at: datetime | None = None
