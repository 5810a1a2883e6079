"""User accounts referenced by memberships, cards, and invitations."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from uuid import UUID, uuid4

from sqlmodel import Field

from trellone.core.time import utc_datetime_type, utcnow
from trellone.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

# Fields that must never leave the service in any response or broadcast.
SENSITIVE_USER_FIELDS = frozenset({"password", "email_verify_token", "forgot_password_token"})


class UserVerifyStatus(IntEnum):
    UNVERIFIED = 0
    VERIFIED = 1
    BANNED = 2


class User(QueryModel, table=True):
    """Registered account; credentials are managed by the auth service."""

    __tablename__ = "users"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(index=True, unique=True)
    username: str = Field(index=True, unique=True)
    display_name: str = Field(default="")
    avatar: str = Field(default="")
    password: str = Field(default="")
    email_verify_token: str = Field(default="")
    forgot_password_token: str = Field(default="")
    verify: int = Field(default=UserVerifyStatus.UNVERIFIED)
    created_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=utc_datetime_type())
