"""Explicit board membership rows."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class BoardMember(QueryModel, table=True):
    """Explicit board role for one user; at most one row per (board, user)."""

    __tablename__ = "board_members"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "board_id",
            "user_id",
            name="uq_board_members_board_user",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    role: str = Field(index=True)
    joined_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
