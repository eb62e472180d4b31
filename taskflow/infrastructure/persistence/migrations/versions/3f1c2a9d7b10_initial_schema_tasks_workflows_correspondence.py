"""initial_schema_tasks_workflows_correspondence

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:41.508233

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create app_user, main_task, sub_task, workflow_definition, task_correspondence."""
    op.create_table(
        "app_user",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_app_user_created_at", "app_user", ["created_at"])

    op.create_table(
        "main_task",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="Not Started"),
        sa.Column("project", sa.String(length=255), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "assignee_id",
            sa.String(),
            sa.ForeignKey("app_user.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "creator_id",
            sa.String(),
            sa.ForeignKey("app_user.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_main_task_assignee_id", "main_task", ["assignee_id"])
    op.create_index("ix_main_task_created_at", "main_task", ["created_at"])

    op.create_table(
        "sub_task",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "main_task_id",
            sa.String(),
            sa.ForeignKey("main_task.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("parent_sub_task_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="Not Started"),
        sa.Column("category", sa.String(length=255), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "assignee_id",
            sa.String(),
            sa.ForeignKey("app_user.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "creator_id",
            sa.String(),
            sa.ForeignKey("app_user.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_sub_task_main_parent", "sub_task", ["main_task_id", "parent_sub_task_id"])
    op.create_index("ix_sub_task_parent_sub_task_id", "sub_task", ["parent_sub_task_id"])
    op.create_index("ix_sub_task_assignee_id", "sub_task", ["assignee_id"])
    op.create_index("ix_sub_task_created_at", "sub_task", ["created_at"])

    op.create_table(
        "workflow_definition",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("graph_json", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_workflow_definition_title", "workflow_definition", ["title"])
    op.create_index("ix_workflow_definition_created_at", "workflow_definition", ["created_at"])

    op.create_table(
        "task_correspondence",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("recipients", sa.JSON(), nullable=False),
        sa.Column("sender", sa.String(length=320), nullable=False),
        sa.Column(
            "main_task_id",
            sa.String(),
            sa.ForeignKey("main_task.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sub_task_id", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_task_correspondence_main_task_id", "task_correspondence", ["main_task_id"])
    op.create_index("ix_task_correspondence_sub_task_id", "task_correspondence", ["sub_task_id"])
    op.create_index("ix_task_correspondence_created_at", "task_correspondence", ["created_at"])


def downgrade() -> None:
    """Drop all taskflow tables."""
    op.drop_table("task_correspondence")
    op.drop_table("workflow_definition")
    op.drop_table("sub_task")
    op.drop_table("main_task")
    op.drop_table("app_user")
