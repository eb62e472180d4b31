"""Task correspondence ORM model: notification records awaiting delivery."""

from typing import Any

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidTimestampModel


class TaskCorrespondence(CuidTimestampModel, Base):
    """Notification record. Table: task_correspondence. Delivery is out-of-process."""

    __tablename__ = "task_correspondence"

    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    recipients: Mapped[list[Any]] = mapped_column(JSON, nullable=False)
    sender: Mapped[str] = mapped_column(String(320), nullable=False)
    main_task_id: Mapped[str] = mapped_column(
        String, ForeignKey("main_task.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sub_task_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
