"""Card endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends

from trellone.api.deps import authorize_board
from trellone.core.auth import get_auth_context
from trellone.db.session import get_session
from trellone.schemas.cards import (
    CardAttachmentCreate,
    CardAttachmentUpdate,
    CardCommentCreate,
    CardCreate,
    CardMemberUpdate,
    CardRead,
    CardUpdate,
)
from trellone.schemas.common import OkResponse
from trellone.services import cards as card_service
from trellone.services.boards import get_board_or_404
from trellone.services.permissions import BoardPermission

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.core.auth import AuthContext
    from trellone.models.cards import Card

router = APIRouter(prefix="/cards", tags=["cards"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)


async def _authorized_card(
    session: AsyncSession,
    *,
    card_id: UUID,
    auth: AuthContext,
    permission: BoardPermission,
) -> Card:
    card = await card_service.get_card_or_404(session, card_id)
    board = await get_board_or_404(session, card.board_id)
    await authorize_board(session, board=board, user=auth.user, permission=permission)
    return card


def _read(card: Card) -> CardRead:
    return CardRead.model_validate(card, from_attributes=True)


@router.post("", response_model=CardRead)
async def create_card(
    payload: CardCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    """Create a card at the end of a column."""
    board = await get_board_or_404(session, payload.board_id)
    ctx = await authorize_board(
        session,
        board=board,
        user=auth.user,
        permission=BoardPermission.CREATE_CARD,
    )
    card = await card_service.create_card(
        session,
        board=ctx.board,
        column_id=payload.column_id,
        title=payload.title,
    )
    return _read(card)


@router.patch("/{card_id}", response_model=CardRead)
async def update_card(
    card_id: UUID,
    payload: CardUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.EDIT_CARD,
    )
    return _read(await card_service.update_card(session, card=card, payload=payload))


@router.post("/{card_id}/archive", response_model=CardRead)
async def archive_card(
    card_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    """Archive a card; it leaves its column order but is kept."""
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.EDIT_CARD,
    )
    payload = CardUpdate(is_archived=True)
    return _read(await card_service.update_card(session, card=card, payload=payload))


@router.post("/{card_id}/reopen", response_model=CardRead)
async def reopen_card(
    card_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    """Restore an archived card to the end of its column."""
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.EDIT_CARD,
    )
    payload = CardUpdate(is_archived=False)
    return _read(await card_service.update_card(session, card=card, payload=payload))


@router.patch("/{card_id}/members", response_model=CardRead)
async def update_card_member(
    card_id: UUID,
    payload: CardMemberUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.EDIT_CARD,
    )
    card = await card_service.update_card_member(
        session,
        card=card,
        user_id=payload.user_id,
        action=payload.action,
    )
    return _read(card)


@router.post("/{card_id}/comments", response_model=CardRead)
async def add_card_comment(
    card_id: UUID,
    payload: CardCommentCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.COMMENT,
    )
    card = await card_service.add_card_comment(
        session,
        card=card,
        user=auth.user,
        content=payload.content,
    )
    return _read(card)


@router.post("/{card_id}/attachments", response_model=CardRead)
async def add_card_attachment(
    card_id: UUID,
    payload: CardAttachmentCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    """Attach an uploaded file or a link; newest attachments come first."""
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.ATTACH,
    )
    card = await card_service.add_card_attachment(
        session,
        card=card,
        user_id=auth.user.id,
        payload=payload,
    )
    return _read(card)


@router.put("/{card_id}/attachments/{attachment_id}", response_model=CardRead)
async def update_card_attachment(
    card_id: UUID,
    attachment_id: UUID,
    payload: CardAttachmentUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.ATTACH,
    )
    card = await card_service.update_card_attachment(
        session,
        card=card,
        attachment_id=attachment_id,
        payload=payload,
    )
    return _read(card)


@router.delete("/{card_id}/attachments/{attachment_id}", response_model=CardRead)
async def remove_card_attachment(
    card_id: UUID,
    attachment_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CardRead:
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.ATTACH,
    )
    card = await card_service.remove_card_attachment(
        session,
        card=card,
        attachment_id=attachment_id,
    )
    return _read(card)


@router.delete("/{card_id}", response_model=OkResponse)
async def delete_card(
    card_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    """Delete an archived card permanently."""
    card = await _authorized_card(
        session,
        card_id=card_id,
        auth=auth,
        permission=BoardPermission.DELETE_CARD,
    )
    await card_service.delete_card(session, card=card)
    return OkResponse()
