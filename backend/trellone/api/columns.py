"""Column endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends

from trellone.api.deps import BoardContext, authorize_board
from trellone.core.auth import get_auth_context
from trellone.db.session import get_session
from trellone.schemas.boards import CardOrderUpdate
from trellone.schemas.columns import ColumnCreate, ColumnRead, ColumnUpdate
from trellone.schemas.common import OkResponse
from trellone.services import columns as column_service
from trellone.services.boards import get_board_or_404
from trellone.services.ordering import reorder_cards
from trellone.services.permissions import BoardPermission

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.core.auth import AuthContext
    from trellone.models.columns import BoardColumn

router = APIRouter(prefix="/columns", tags=["columns"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)


async def _authorize_column(
    session: AsyncSession,
    *,
    column_id: UUID,
    auth: AuthContext,
    permission: BoardPermission,
) -> tuple[BoardColumn, BoardContext]:
    column = await column_service.get_column_or_404(session, column_id)
    board = await get_board_or_404(session, column.board_id)
    ctx = await authorize_board(session, board=board, user=auth.user, permission=permission)
    return column, ctx


@router.post("", response_model=ColumnRead)
async def create_column(
    payload: ColumnCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ColumnRead:
    """Create a column at the end of the board."""
    board = await get_board_or_404(session, payload.board_id)
    ctx = await authorize_board(
        session,
        board=board,
        user=auth.user,
        permission=BoardPermission.CREATE_COLUMN,
    )
    column = await column_service.create_column(session, board=ctx.board, title=payload.title)
    return ColumnRead.model_validate(column, from_attributes=True)


@router.patch("/{column_id}", response_model=ColumnRead)
async def update_column(
    column_id: UUID,
    payload: ColumnUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ColumnRead:
    column, ctx = await _authorize_column(
        session,
        column_id=column_id,
        auth=auth,
        permission=BoardPermission.EDIT_COLUMN,
    )
    column = await column_service.update_column(
        session,
        board=ctx.board,
        column=column,
        payload=payload,
    )
    return ColumnRead.model_validate(column, from_attributes=True)


@router.put("/{column_id}/card-order", response_model=ColumnRead)
async def update_card_order(
    column_id: UUID,
    payload: CardOrderUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ColumnRead:
    """Replace ``card_order_ids`` with a permutation of the current value."""
    column, _ = await _authorize_column(
        session,
        column_id=column_id,
        auth=auth,
        permission=BoardPermission.EDIT_CARD,
    )
    column = await reorder_cards(session, column=column, card_order_ids=payload.card_order_ids)
    return ColumnRead.model_validate(column, from_attributes=True)


@router.delete("/{column_id}", response_model=OkResponse)
async def delete_column(
    column_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    """Delete a column and its cards."""
    column, ctx = await _authorize_column(
        session,
        column_id=column_id,
        auth=auth,
        permission=BoardPermission.DELETE_COLUMN,
    )
    await column_service.delete_column(session, board=ctx.board, column=column)
    return OkResponse()
