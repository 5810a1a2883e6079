"""Schemas for board payloads and the hydrated board view."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from trellone.models.workspaces import Visibility
from trellone.schemas.cards import CardRead
from trellone.schemas.columns import ColumnRead, ColumnWithCards
from trellone.schemas.common import reject_explicit_nulls, require_fields_set
from trellone.schemas.users import UserPublic
from trellone.schemas.workspaces import WorkspaceSummaryRead
from trellone.services.permissions import BoardRole

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class BoardCreate(SQLModel):
    title: str = Field(min_length=3, max_length=50)
    description: str = Field(default="", max_length=256)
    visibility: Visibility = Visibility.PUBLIC
    workspace_id: UUID | None = None


# ``workspace_id`` may be sent as null to detach the board from its workspace.
BOARD_NON_NULLABLE_FIELDS = ("title", "description", "visibility", "cover_photo", "is_destroyed")


class BoardUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=256)
    visibility: Visibility | None = None
    cover_photo: str | None = None
    workspace_id: UUID | None = None
    is_destroyed: bool | None = None

    @model_validator(mode="after")
    def _require_change(self) -> BoardUpdate:
        require_fields_set(self)
        reject_explicit_nulls(self, BOARD_NON_NULLABLE_FIELDS)
        return self


class ColumnOrderUpdate(SQLModel):
    column_order_ids: list[str]


class CardOrderUpdate(SQLModel):
    card_order_ids: list[str]


class MoveCardToDifferentColumn(SQLModel):
    current_card_id: UUID
    prev_column_id: UUID
    prev_card_order_ids: list[str]
    next_column_id: UUID
    next_card_order_ids: list[str]


class BoardMemberRoleUpdate(SQLModel):
    role: BoardRole


class BoardRead(SQLModel):
    id: UUID
    title: str
    description: str
    visibility: str
    cover_photo: str
    workspace_id: UUID | None = None
    column_order_ids: list[str] = Field(default_factory=list)
    is_destroyed: bool
    created_at: datetime
    updated_at: datetime


class BoardMemberView(UserPublic):
    """Board member: public profile overlaid with membership fields."""

    user_id: UUID
    role: BoardRole
    joined_at: datetime


class BoardDetailRead(BoardRead):
    """Hydrated board returned when a board is opened.

    ``columns`` and their ``cards`` are unordered lookup tables; clients order
    them by ``column_order_ids`` and each column's ``card_order_ids``.
    """

    columns: list[ColumnWithCards] = Field(default_factory=list)
    members: list[BoardMemberView] = Field(default_factory=list)
    workspace: WorkspaceSummaryRead | None = None


class CardMoveRead(SQLModel):
    card: CardRead
    prev_column: ColumnRead
    next_column: ColumnRead
