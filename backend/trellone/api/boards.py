"""Board endpoints: lifecycle, open-board view, ordering, and membership."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from trellone.api.deps import BoardContext, require_board
from trellone.core.auth import get_auth_context
from trellone.core.errors import ForbiddenError
from trellone.db.pagination import paginate
from trellone.db.session import get_session
from trellone.schemas.boards import (
    BoardCreate,
    BoardDetailRead,
    BoardMemberRoleUpdate,
    BoardRead,
    BoardUpdate,
    CardMoveRead,
    ColumnOrderUpdate,
    MoveCardToDifferentColumn,
)
from trellone.schemas.cards import CardRead
from trellone.schemas.columns import ColumnRead
from trellone.schemas.common import OkResponse
from trellone.schemas.pagination import DefaultLimitOffsetPage
from trellone.services import boards as board_service
from trellone.services import workspaces as workspace_service
from trellone.services.board_aggregation import get_board_detail
from trellone.services.ordering import CardMove, move_card_to_column, reorder_columns
from trellone.services.permissions import BoardPermission

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.core.auth import AuthContext
    from trellone.models.boards import Board

router = APIRouter(prefix="/boards", tags=["boards"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)
KEYWORD_QUERY = Query(default=None, max_length=50)
MANAGE_DEP = Depends(require_board(BoardPermission.MANAGE_BOARD, allow_closed=True))
EDIT_COLUMN_DEP = Depends(require_board(BoardPermission.EDIT_COLUMN))
EDIT_CARD_DEP = Depends(require_board(BoardPermission.EDIT_CARD))
MANAGE_MEMBERS_DEP = Depends(require_board(BoardPermission.MANAGE_MEMBERS))
DELETE_DEP = Depends(require_board(BoardPermission.DELETE_BOARD, allow_closed=True))


def _to_board_reads(items: Sequence[Board]) -> Sequence[BoardRead]:
    return [BoardRead.model_validate(item, from_attributes=True) for item in items]


@router.post("", response_model=BoardRead)
async def create_board(
    payload: BoardCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> BoardRead:
    """Create a board; the caller becomes its Admin."""
    board = await board_service.create_board(session, user_id=auth.user.id, payload=payload)
    return BoardRead.model_validate(board, from_attributes=True)


@router.get("", response_model=DefaultLimitOffsetPage[BoardRead])
async def list_my_boards(
    keyword: str | None = KEYWORD_QUERY,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> LimitOffsetPage[BoardRead]:
    """List live boards where the caller holds an explicit membership."""
    statement = board_service.my_boards_statement(user_id=auth.user.id, keyword=keyword)
    return await paginate(session, statement, transformer=_to_board_reads)


@router.get("/workspace/{workspace_id}", response_model=DefaultLimitOffsetPage[BoardRead])
async def list_my_workspace_boards(
    workspace_id: UUID,
    keyword: str | None = KEYWORD_QUERY,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> LimitOffsetPage[BoardRead]:
    """List the caller's boards inside one workspace; members and guests only."""
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    row = await workspace_service.get_workspace_row(
        session,
        workspace_id=workspace.id,
        user_id=auth.user.id,
    )
    if row is None:
        raise ForbiddenError("You are not a member of this workspace")
    statement = board_service.my_boards_statement(
        user_id=auth.user.id,
        keyword=keyword,
        workspace_id=workspace.id,
    )
    return await paginate(session, statement, transformer=_to_board_reads)


@router.get("/{board_id}", response_model=BoardDetailRead)
async def open_board(
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> BoardDetailRead:
    """Return the hydrated board; non-members get 404."""
    return await get_board_detail(session, board_id=board_id, user_id=auth.user.id)


@router.patch("/{board_id}", response_model=BoardRead)
async def update_board(
    payload: BoardUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = MANAGE_DEP,
) -> BoardRead:
    board = await board_service.update_board(
        session,
        board=ctx.board,
        user_id=ctx.user.id,
        payload=payload,
    )
    return BoardRead.model_validate(board, from_attributes=True)


@router.put("/{board_id}/column-order", response_model=BoardRead)
async def update_column_order(
    payload: ColumnOrderUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = EDIT_COLUMN_DEP,
) -> BoardRead:
    """Replace ``column_order_ids`` with a permutation of the current value."""
    board = await reorder_columns(
        session,
        board=ctx.board,
        column_order_ids=payload.column_order_ids,
    )
    return BoardRead.model_validate(board, from_attributes=True)


@router.put("/{board_id}/supports/moving-card", response_model=CardMoveRead)
async def move_card_to_different_column(
    payload: MoveCardToDifferentColumn,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = EDIT_CARD_DEP,
) -> CardMoveRead:
    result = await move_card_to_column(
        session,
        board=ctx.board,
        move=CardMove(
            card_id=payload.current_card_id,
            prev_column_id=payload.prev_column_id,
            prev_card_order_ids=payload.prev_card_order_ids,
            next_column_id=payload.next_column_id,
            next_card_order_ids=payload.next_card_order_ids,
        ),
    )
    return CardMoveRead(
        card=CardRead.model_validate(result.card, from_attributes=True),
        prev_column=ColumnRead.model_validate(result.prev_column, from_attributes=True),
        next_column=ColumnRead.model_validate(result.next_column, from_attributes=True),
    )


@router.put("/{board_id}/members/{user_id}/role", response_model=BoardDetailRead)
async def edit_board_member_role(
    user_id: UUID,
    payload: BoardMemberRoleUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = MANAGE_MEMBERS_DEP,
) -> BoardDetailRead:
    await board_service.edit_board_member_role(
        session,
        board=ctx.board,
        user_id=user_id,
        role=payload.role,
    )
    return await get_board_detail(session, board_id=ctx.board.id, user_id=ctx.user.id)


@router.post("/{board_id}/members/me/leave", response_model=OkResponse)
async def leave_board(
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    board = await board_service.get_board_or_404(session, board_id)
    await board_service.leave_board(session, board=board, user_id=auth.user.id)
    return OkResponse()


@router.delete("/{board_id}", response_model=OkResponse)
async def delete_board(
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = DELETE_DEP,
) -> OkResponse:
    """Delete a board with its columns, cards, memberships, and invitations."""
    await board_service.delete_board(session, board=ctx.board)
    return OkResponse()
