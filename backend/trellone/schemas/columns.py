"""Schemas for column payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from trellone.schemas.cards import CardRead
from trellone.schemas.common import require_fields_set

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ColumnCreate(SQLModel):
    board_id: UUID
    title: str = Field(min_length=3, max_length=50)


class ColumnUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=3, max_length=50)
    is_destroyed: bool | None = None

    @model_validator(mode="after")
    def _require_change(self) -> ColumnUpdate:
        require_fields_set(self)
        return self


class ColumnRead(SQLModel):
    id: UUID
    board_id: UUID
    title: str
    card_order_ids: list[str] = Field(default_factory=list)
    is_destroyed: bool
    created_at: datetime
    updated_at: datetime


class ColumnWithCards(ColumnRead):
    """Column nested with its active cards (unordered; see ``card_order_ids``)."""

    cards: list[CardRead] = Field(default_factory=list)
