"""Board column model with its card ordering array."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class BoardColumn(QueryModel, table=True):
    """Column on a board; ``card_order_ids`` is the display order of its cards."""

    __tablename__ = "columns"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True)
    title: str
    card_order_ids: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_destroyed: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
