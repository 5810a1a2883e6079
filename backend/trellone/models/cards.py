"""Card model with members, append-only comments, and attachments stored as JSON."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Card(QueryModel, table=True):
    """Card in a column.

    ``is_completed`` is tri-state: ``None`` means completion does not apply.
    Archived cards stay in storage but are excluded from active views.
    ``attachments`` are kept newest first.
    """

    __tablename__ = "cards"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True)
    column_id: UUID = Field(foreign_key="columns.id", index=True)
    title: str
    description: str = Field(default="")
    cover_photo: str = Field(default="")
    due_date: datetime | None = Field(default=None, sa_type=utc_datetime_type())
    is_completed: bool | None = None
    members: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    comments: list[dict[str, object]] = Field(default_factory=list, sa_column=Column(JSON))
    attachments: list[dict[str, object]] = Field(default_factory=list, sa_column=Column(JSON))
    is_archived: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
