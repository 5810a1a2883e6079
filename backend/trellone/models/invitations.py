"""Board invitation model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class InvitationType(str, Enum):
    BOARD_INVITATION = "BOARD_INVITATION"


class BoardInvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Invitation(QueryModel, table=True):
    """Invitation from one user to another.

    ``board_id`` and ``status`` are exposed to clients as the
    ``board_invitation`` sub-object. ``invite_token`` is cleared once the
    invitation is resolved.
    """

    __tablename__ = "invitations"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    inviter_id: UUID = Field(foreign_key="users.id", index=True)
    invitee_id: UUID = Field(foreign_key="users.id", index=True)
    type: str = Field(default=InvitationType.BOARD_INVITATION.value)
    board_id: UUID = Field(foreign_key="boards.id", index=True)
    status: str = Field(default=BoardInvitationStatus.PENDING.value, index=True)
    invite_token: str = Field(default="")
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
