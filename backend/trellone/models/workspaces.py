"""Workspace model grouping boards and members."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Visibility(str, Enum):
    """Visibility shared by workspaces and boards."""

    PUBLIC = "Public"
    PRIVATE = "Private"


class Workspace(QueryModel, table=True):
    """Top-level container owning boards by reference."""

    __tablename__ = "workspaces"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str = Field(default="")
    logo: str = Field(default="")
    visibility: str = Field(default=Visibility.PRIVATE.value)
    is_destroyed: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
