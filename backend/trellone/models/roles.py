"""Persisted role registry rows seeded from the static permission tables."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Role(QueryModel, table=True):
    """Role definition keyed by ``(name, level)``."""

    __tablename__ = "roles"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (UniqueConstraint("name", "level", name="uq_roles_name_level"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True)
    level: str = Field(index=True)
    permissions: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
