"""Schemas for workspace payloads and hydrated workspace views."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from trellone.models.workspaces import Visibility
from trellone.schemas.common import require_fields_set
from trellone.schemas.users import UserPublic
from trellone.services.permissions import WorkspaceRole

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class WorkspaceCreate(SQLModel):
    title: str = Field(min_length=3, max_length=50)
    description: str = Field(default="", max_length=256)
    visibility: Visibility = Visibility.PRIVATE


class WorkspaceUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=256)
    logo: str | None = None
    visibility: Visibility | None = None

    @model_validator(mode="after")
    def _require_change(self) -> WorkspaceUpdate:
        require_fields_set(self)
        return self


class WorkspaceMemberRoleUpdate(SQLModel):
    role: WorkspaceRole


class WorkspaceBoardSummary(SQLModel):
    """Sibling board link shown in workspace navigation."""

    id: UUID
    title: str
    cover_photo: str = ""


class WorkspaceMemberView(UserPublic):
    """Workspace member: public profile overlaid with membership fields."""

    user_id: UUID
    role: WorkspaceRole
    joined_at: datetime


class WorkspaceRead(SQLModel):
    id: UUID
    title: str
    description: str
    logo: str
    visibility: str
    is_destroyed: bool
    created_at: datetime
    updated_at: datetime


class WorkspaceSummaryRead(WorkspaceRead):
    """Parent workspace embedded in a board view."""

    boards: list[WorkspaceBoardSummary] = Field(default_factory=list)


class WorkspaceListItem(WorkspaceRead):
    """List entry: workspace plus the caller's boards in it."""

    boards: list[WorkspaceBoardSummary] = Field(default_factory=list)


class WorkspaceDetailRead(WorkspaceRead):
    """Hydrated workspace with member profiles, guests, and live boards."""

    members: list[WorkspaceMemberView] = Field(default_factory=list)
    guests: list[UserPublic] = Field(default_factory=list)
    boards: list[WorkspaceBoardSummary] = Field(default_factory=list)


class GuestRemovalRead(SQLModel):
    workspace: WorkspaceRead
    affected_board_ids: list[UUID] = Field(default_factory=list)
