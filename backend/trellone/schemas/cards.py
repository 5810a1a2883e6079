"""Schemas for card payloads."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import field_validator, model_validator
from sqlmodel import Field, SQLModel

from trellone.schemas.common import reject_explicit_nulls, require_fields_set

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

# ``due_date`` and ``is_completed`` accept null; it clears the value.
CARD_NON_NULLABLE_FIELDS = ("title", "description", "cover_photo", "is_archived")


class CardMemberAction(str, Enum):
    ADD = "ADD"
    REMOVE = "REMOVE"


class AttachmentType(str, Enum):
    FILE = "FILE"
    LINK = "LINK"


class CardCreate(SQLModel):
    board_id: UUID
    column_id: UUID
    title: str = Field(min_length=3, max_length=50)


class CardUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=256)
    due_date: datetime | None = None
    is_completed: bool | None = None
    cover_photo: str | None = None
    is_archived: bool | None = None

    @field_validator("due_date")
    @classmethod
    def _due_date_as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def _require_change(self) -> CardUpdate:
        require_fields_set(self)
        reject_explicit_nulls(self, CARD_NON_NULLABLE_FIELDS)
        return self


class CardMemberUpdate(SQLModel):
    user_id: UUID
    action: CardMemberAction


class CardCommentCreate(SQLModel):
    content: str = Field(min_length=1, max_length=1024)


class CardComment(SQLModel):
    """Comment snapshot; user fields are copied at write time."""

    comment_id: UUID
    user_id: UUID
    user_email: str
    user_display_name: str = ""
    user_avatar: str = ""
    content: str
    commented_at: datetime


class AttachmentFile(SQLModel):
    """Already-uploaded file; the upload itself happens elsewhere."""

    url: str = Field(min_length=1)
    mime_type: str = Field(min_length=1)
    display_name: str = ""
    size: int | None = Field(default=None, ge=0)
    original_name: str = ""


class AttachmentLink(SQLModel):
    url: str = Field(min_length=1)
    display_name: str = ""
    favicon_url: str = ""


class CardAttachmentCreate(SQLModel):
    type: AttachmentType
    file: AttachmentFile | None = None
    link: AttachmentLink | None = None

    @model_validator(mode="after")
    def _match_type(self) -> CardAttachmentCreate:
        if self.type == AttachmentType.FILE and self.file is None:
            raise ValueError("file is required for FILE attachments")
        if self.type == AttachmentType.LINK and self.link is None:
            raise ValueError("link is required for LINK attachments")
        return self


class CardAttachmentUpdate(SQLModel):
    """Links may change url and name; files may only be renamed."""

    type: AttachmentType
    display_name: str | None = Field(default=None, max_length=256)
    url: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _match_type(self) -> CardAttachmentUpdate:
        if self.type == AttachmentType.FILE and self.url is not None:
            raise ValueError("url cannot be changed on FILE attachments")
        if self.display_name is None and self.url is None:
            raise ValueError("At least one field must be provided")
        return self


class CardAttachment(SQLModel):
    attachment_id: UUID
    type: AttachmentType
    file: AttachmentFile | None = None
    link: AttachmentLink | None = None
    uploaded_by: UUID
    added_at: datetime


class CardRead(SQLModel):
    id: UUID
    board_id: UUID
    column_id: UUID
    title: str
    description: str
    cover_photo: str
    due_date: datetime | None = None
    is_completed: bool | None = None
    members: list[str] = Field(default_factory=list)
    comments: list[CardComment] = Field(default_factory=list)
    attachments: list[CardAttachment] = Field(default_factory=list)
    is_archived: bool
    created_at: datetime
    updated_at: datetime
