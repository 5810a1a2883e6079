"""Initial schema: users, workspaces, boards, columns, cards, invitations, roles.

Revision ID: 0f3a9c1d2b47
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0f3a9c1d2b47"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("username", sa.String(), nullable=False),
            sa.Column("display_name", sa.String(), nullable=False, server_default=""),
            sa.Column("avatar", sa.String(), nullable=False, server_default=""),
            sa.Column("password", sa.String(), nullable=False, server_default=""),
            sa.Column("email_verify_token", sa.String(), nullable=False, server_default=""),
            sa.Column("forgot_password_token", sa.String(), nullable=False, server_default=""),
            sa.Column("verify", sa.Integer(), nullable=False, server_default=sa.text("0")),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
        op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)

    if not inspector.has_table("workspaces"):
        op.create_table(
            "workspaces",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=False, server_default=""),
            sa.Column("logo", sa.String(), nullable=False, server_default=""),
            sa.Column("visibility", sa.String(), nullable=False, server_default="Private"),
            sa.Column("is_destroyed", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_workspaces_is_destroyed"), "workspaces", ["is_destroyed"])

    if not inspector.has_table("workspace_members"):
        op.create_table(
            "workspace_members",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("workspace_id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.Column("role", sa.String(), nullable=True),
            sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "workspace_id",
                "user_id",
                name="uq_workspace_members_workspace_user",
            ),
        )
        for column in ("workspace_id", "user_id", "role"):
            op.create_index(
                op.f(f"ix_workspace_members_{column}"),
                "workspace_members",
                [column],
            )

    if not inspector.has_table("boards"):
        op.create_table(
            "boards",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=False, server_default=""),
            sa.Column("visibility", sa.String(), nullable=False, server_default="Public"),
            sa.Column("cover_photo", sa.String(), nullable=False, server_default=""),
            sa.Column("workspace_id", sa.Uuid(), nullable=True),
            sa.Column("column_order_ids", sa.JSON(), nullable=True),
            sa.Column("is_destroyed", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_boards_workspace_id"), "boards", ["workspace_id"])
        op.create_index(op.f("ix_boards_is_destroyed"), "boards", ["is_destroyed"])

    if not inspector.has_table("board_members"):
        op.create_table(
            "board_members",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("board_id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.Column("role", sa.String(), nullable=False),
            sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["board_id"], ["boards.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("board_id", "user_id", name="uq_board_members_board_user"),
        )
        for column in ("board_id", "user_id", "role"):
            op.create_index(op.f(f"ix_board_members_{column}"), "board_members", [column])

    if not inspector.has_table("columns"):
        op.create_table(
            "columns",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("board_id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("card_order_ids", sa.JSON(), nullable=True),
            sa.Column("is_destroyed", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.ForeignKeyConstraint(["board_id"], ["boards.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_columns_board_id"), "columns", ["board_id"])
        op.create_index(op.f("ix_columns_is_destroyed"), "columns", ["is_destroyed"])

    if not inspector.has_table("cards"):
        op.create_table(
            "cards",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("board_id", sa.Uuid(), nullable=False),
            sa.Column("column_id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=False, server_default=""),
            sa.Column("cover_photo", sa.String(), nullable=False, server_default=""),
            sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("is_completed", sa.Boolean(), nullable=True),
            sa.Column("members", sa.JSON(), nullable=True),
            sa.Column("comments", sa.JSON(), nullable=True),
            sa.Column("attachments", sa.JSON(), nullable=True),
            sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.ForeignKeyConstraint(["board_id"], ["boards.id"]),
            sa.ForeignKeyConstraint(["column_id"], ["columns.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        for column in ("board_id", "column_id", "is_archived"):
            op.create_index(op.f(f"ix_cards_{column}"), "cards", [column])

    if not inspector.has_table("invitations"):
        op.create_table(
            "invitations",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("inviter_id", sa.Uuid(), nullable=False),
            sa.Column("invitee_id", sa.Uuid(), nullable=False),
            sa.Column("type", sa.String(), nullable=False),
            sa.Column("board_id", sa.Uuid(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
            sa.Column("invite_token", sa.String(), nullable=False, server_default=""),
            *_timestamps(),
            sa.ForeignKeyConstraint(["inviter_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["invitee_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["board_id"], ["boards.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        for column in ("inviter_id", "invitee_id", "board_id", "status"):
            op.create_index(op.f(f"ix_invitations_{column}"), "invitations", [column])

    if not inspector.has_table("roles"):
        op.create_table(
            "roles",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("level", sa.String(), nullable=False),
            sa.Column("permissions", sa.JSON(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name", "level", name="uq_roles_name_level"),
        )
        op.create_index(op.f("ix_roles_name"), "roles", ["name"])
        op.create_index(op.f("ix_roles_level"), "roles", ["level"])


def downgrade() -> None:
    for table in (
        "roles",
        "invitations",
        "cards",
        "columns",
        "board_members",
        "boards",
        "workspace_members",
        "workspaces",
        "users",
    ):
        op.drop_table(table)
