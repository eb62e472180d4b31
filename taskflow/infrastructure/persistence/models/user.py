"""User ORM model: identities that tasks are assigned to and created by."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidTimestampModel


class User(CuidTimestampModel, Base):
    """User model. Table: app_user. Email is unique (get-or-create key)."""

    __tablename__ = "app_user"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
