"""User projections safe to return to clients."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class UserPublic(SQLModel):
    """Public profile; credentials and security tokens are never included."""

    id: UUID
    email: str
    username: str
    display_name: str = ""
    avatar: str = ""
    verify: int = 0
    created_at: datetime
    updated_at: datetime


class UserSummary(SQLModel):
    """Compact user reference embedded in comments and invitations."""

    id: UUID
    username: str
    display_name: str = ""
    avatar: str = ""
