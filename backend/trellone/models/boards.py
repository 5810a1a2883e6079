"""Board model with its column ordering array."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel
from trellone.models.workspaces import Visibility

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Board(QueryModel, table=True):
    """Kanban board; ``column_order_ids`` is the display order of its columns."""

    __tablename__ = "boards"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str = Field(default="")
    visibility: str = Field(default=Visibility.PUBLIC.value)
    cover_photo: str = Field(default="")
    workspace_id: UUID | None = Field(default=None, foreign_key="workspaces.id", index=True)
    column_order_ids: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_destroyed: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
