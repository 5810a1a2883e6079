"""Workspace membership rows covering both members and guests."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class WorkspaceMember(QueryModel, table=True):
    """A user's standing in a workspace.

    ``role`` is a ``WorkspaceRole`` value for members and ``None`` for guests.
    The unique constraint keeps a user in at most one of the two sets.
    """

    __tablename__ = "workspace_members"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "workspace_id",
            "user_id",
            name="uq_workspace_members_workspace_user",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    role: str | None = Field(default=None, index=True)
    joined_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())

    @property
    def is_guest(self) -> bool:
        return self.role is None
