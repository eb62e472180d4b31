"""Workflow definition ORM model. Graph is stored as the designer's JSON blob."""

from sqlalchemy import Boolean, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidTimestampModel


class WorkflowDefinition(CuidTimestampModel, Base):
    """Workflow definition. Table: workflow_definition. Titles are not unique; latest wins."""

    __tablename__ = "workflow_definition"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    graph_json: Mapped[str] = mapped_column(Text, nullable=False)
