"""Schemas for persisted role registry rows."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class RoleRead(SQLModel):
    id: UUID
    name: str
    level: str
    permissions: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
