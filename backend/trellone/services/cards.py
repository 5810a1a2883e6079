"""Card mutations: create, edit, archive, members, comments, attachments, delete."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

from sqlmodel import col

from trellone.core.errors import ConflictError, NotFoundError, ValidationError
from trellone.core.logging import get_logger
from trellone.core.time import utcnow
from trellone.models.cards import Card
from trellone.models.columns import BoardColumn
from trellone.schemas.cards import (
    AttachmentType,
    CardAttachment,
    CardAttachmentCreate,
    CardAttachmentUpdate,
    CardComment,
    CardMemberAction,
)
from trellone.services.boards import get_board_membership
from trellone.services.ordering import append_id, remove_id

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.models.boards import Board
    from trellone.models.users import User
    from trellone.schemas.cards import CardUpdate

CARD_NOT_ARCHIVED_MESSAGE = "Card must be archived before it can be deleted"

logger = get_logger(__name__)


async def get_card_or_404(session: AsyncSession, card_id: UUID) -> Card:
    card = await Card.objects.by_id(card_id).first(session)
    if card is None:
        raise NotFoundError("Card not found")
    return card


async def _get_card_column(session: AsyncSession, card: Card) -> BoardColumn:
    column = await BoardColumn.objects.by_id(card.column_id).first(session)
    if column is None:
        raise NotFoundError("Column not found")
    return column


async def create_card(
    session: AsyncSession,
    *,
    board: Board,
    column_id: UUID,
    title: str,
) -> Card:
    """Create a card at the end of its column."""
    column = (
        await BoardColumn.objects.by_id(column_id)
        .filter(col(BoardColumn.board_id) == board.id)
        .filter(col(BoardColumn.is_destroyed).is_(False))
        .first(session)
    )
    if column is None:
        raise NotFoundError("Column not found")
    card = Card(board_id=board.id, column_id=column.id, title=title)
    session.add(card)
    await session.flush()
    column.card_order_ids = append_id(column.card_order_ids, card.id)
    column.updated_at = utcnow()
    session.add(column)
    await session.commit()
    await session.refresh(card)
    return card


async def update_card(session: AsyncSession, *, card: Card, payload: CardUpdate) -> Card:
    """Apply field edits; archiving removes the card from its column order."""
    updates = payload.model_dump(exclude_unset=True)
    archive = updates.pop("is_archived", None)
    now = utcnow()
    if archive is not None and archive != card.is_archived:
        column = await _get_card_column(session, card)
        if archive:
            column.card_order_ids = remove_id(column.card_order_ids, card.id)
        else:
            column.card_order_ids = append_id(column.card_order_ids, card.id)
        column.updated_at = now
        card.is_archived = archive
        session.add(column)
    for key, value in updates.items():
        setattr(card, key, value)
    card.updated_at = now
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card


async def update_card_member(
    session: AsyncSession,
    *,
    card: Card,
    user_id: UUID,
    action: CardMemberAction,
) -> Card:
    """Add or remove a card member; added users must belong to the board."""
    member_key = str(user_id)
    if action == CardMemberAction.ADD:
        if await get_board_membership(session, board_id=card.board_id, user_id=user_id) is None:
            raise ValidationError(
                "User is not a member of this board",
                errors={"user_id": "not a board member"},
            )
        if member_key in card.members:
            raise ConflictError("User is already a member of this card")
        card.members = [*card.members, member_key]
    else:
        if member_key not in card.members:
            raise NotFoundError("User is not a member of this card")
        card.members = [m for m in card.members if m != member_key]
    card.updated_at = utcnow()
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card


async def add_card_comment(
    session: AsyncSession,
    *,
    card: Card,
    user: User,
    content: str,
) -> Card:
    """Append a comment with a snapshot of the author's public fields."""
    comment = CardComment(
        comment_id=uuid4(),
        user_id=user.id,
        user_email=user.email,
        user_display_name=user.display_name,
        user_avatar=user.avatar,
        content=content,
        commented_at=utcnow(),
    )
    card.comments = [*card.comments, comment.model_dump(mode="json")]
    card.updated_at = utcnow()
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card


def _find_attachment(card: Card, attachment_id: UUID) -> int:
    key = str(attachment_id)
    for index, attachment in enumerate(card.attachments):
        if attachment.get("attachment_id") == key:
            return index
    raise NotFoundError("Attachment not found")


async def add_card_attachment(
    session: AsyncSession,
    *,
    card: Card,
    user_id: UUID,
    payload: CardAttachmentCreate,
) -> Card:
    """Prepend a file or link attachment; only the part matching ``type`` is kept."""
    attachment = CardAttachment(
        attachment_id=uuid4(),
        type=payload.type,
        file=payload.file if payload.type == AttachmentType.FILE else None,
        link=payload.link if payload.type == AttachmentType.LINK else None,
        uploaded_by=user_id,
        added_at=utcnow(),
    )
    card.attachments = [attachment.model_dump(mode="json"), *card.attachments]
    card.updated_at = utcnow()
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card


async def update_card_attachment(
    session: AsyncSession,
    *,
    card: Card,
    attachment_id: UUID,
    payload: CardAttachmentUpdate,
) -> Card:
    index = _find_attachment(card, attachment_id)
    current = CardAttachment.model_validate(card.attachments[index])
    if current.type != payload.type:
        raise ValidationError(
            "Attachment type does not match",
            errors={"type": f"expected {current.type.value}"},
        )
    changes = payload.model_dump(exclude_none=True, include={"display_name", "url"})
    if current.file is not None:
        current.file = current.file.model_copy(update=changes)
    if current.link is not None:
        current.link = current.link.model_copy(update=changes)
    attachments = list(card.attachments)
    attachments[index] = current.model_dump(mode="json")
    card.attachments = attachments
    card.updated_at = utcnow()
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card


async def remove_card_attachment(
    session: AsyncSession,
    *,
    card: Card,
    attachment_id: UUID,
) -> Card:
    index = _find_attachment(card, attachment_id)
    card.attachments = [a for i, a in enumerate(card.attachments) if i != index]
    card.updated_at = utcnow()
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card


async def delete_card(session: AsyncSession, *, card: Card) -> None:
    """Hard-delete an archived card; active cards must be archived first."""
    if not card.is_archived:
        raise ConflictError(CARD_NOT_ARCHIVED_MESSAGE)
    column = await BoardColumn.objects.by_id(card.column_id).first(session)
    if column is not None:
        column.card_order_ids = remove_id(column.card_order_ids, card.id)
        column.updated_at = utcnow()
        session.add(column)
    await session.delete(card)
    await session.commit()
    logger.info("card.deleted card_id=%s board_id=%s", card.id, card.board_id)
