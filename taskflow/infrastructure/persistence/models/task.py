"""Main task and sub-task ORM models."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidTimestampModel
from taskflow.infrastructure.persistence.models.user import User
from taskflow.shared.enums import TaskStatus


class MainTask(CuidTimestampModel, Base):
    """Top-level task. Table: main_task."""

    __tablename__ = "main_task"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=TaskStatus.NOT_STARTED.value,
        server_default=TaskStatus.NOT_STARTED.value,
    )
    project: Mapped[str | None] = mapped_column(String(255), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assignee_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    creator_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )

    assignee: Mapped[User | None] = relationship(foreign_keys=[assignee_id], lazy="joined")
    creator: Mapped[User | None] = relationship(foreign_keys=[creator_id], lazy="joined")


class SubTask(CuidTimestampModel, Base):
    """Sub-task under a main task, optionally under a parent sub-task. Table: sub_task."""

    __tablename__ = "sub_task"

    main_task_id: Mapped[str] = mapped_column(
        String, ForeignKey("main_task.id", ondelete="CASCADE"), nullable=False
    )
    # No FK: parent links come from user data and may be dangling or cyclic.
    parent_sub_task_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=TaskStatus.NOT_STARTED.value,
        server_default=TaskStatus.NOT_STARTED.value,
    )
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assignee_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    creator_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )

    assignee: Mapped[User | None] = relationship(foreign_keys=[assignee_id], lazy="joined")
    creator: Mapped[User | None] = relationship(foreign_keys=[creator_id], lazy="joined")

    __table_args__ = (Index("ix_sub_task_main_parent", "main_task_id", "parent_sub_task_id"),)
