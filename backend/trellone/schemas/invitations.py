"""Schemas for board invitation payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from trellone.models.invitations import BoardInvitationStatus
from trellone.schemas.users import UserPublic

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class BoardInvitationCreate(SQLModel):
    invitee_email: EmailStr
    board_id: UUID


class BoardInvitationUpdate(SQLModel):
    status: BoardInvitationStatus


class InviteTokenVerify(SQLModel):
    invite_token: str = Field(min_length=1)


class BoardInvitationDetails(SQLModel):
    board_id: UUID
    status: BoardInvitationStatus


class InvitationBoardSummary(SQLModel):
    id: UUID
    title: str
    cover_photo: str = ""


class InvitationRead(SQLModel):
    id: UUID
    inviter_id: UUID
    invitee_id: UUID
    type: str
    board_invitation: BoardInvitationDetails
    created_at: datetime
    updated_at: datetime


class InvitationDetailRead(InvitationRead):
    """Invitation hydrated with public user profiles and the target board."""

    inviter: UserPublic | None = None
    invitee: UserPublic | None = None
    board: InvitationBoardSummary | None = None


class InvitationCreated(InvitationRead):
    """Creation response; carries the one-time invite token."""

    invite_token: str
