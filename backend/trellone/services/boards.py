"""Board lifecycle, membership, and cascade-delete operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlmodel import col, select

from trellone.core.errors import ConflictError, ForbiddenError, NotFoundError
from trellone.core.logging import get_logger
from trellone.core.time import utcnow
from trellone.db import crud
from trellone.models.board_members import BoardMember
from trellone.models.boards import Board
from trellone.models.cards import Card
from trellone.models.columns import BoardColumn
from trellone.models.invitations import Invitation
from trellone.services.permissions import BoardRole, WorkspacePermission
from trellone.services.rbac import require_workspace_permission

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.sql import Select
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.schemas.boards import BoardCreate, BoardUpdate

BOARD_CLOSED_MESSAGE = "Board is closed, reopen required"

logger = get_logger(__name__)


def assert_board_is_open(board: Board) -> None:
    if board.is_destroyed:
        raise ForbiddenError(BOARD_CLOSED_MESSAGE)


async def get_board_or_404(session: AsyncSession, board_id: UUID) -> Board:
    board = await Board.objects.by_id(board_id).first(session)
    if board is None:
        raise NotFoundError("Board not found")
    return board


async def get_board_membership(
    session: AsyncSession,
    *,
    board_id: UUID,
    user_id: UUID,
) -> BoardMember | None:
    return await BoardMember.objects.filter_by(board_id=board_id, user_id=user_id).first(session)


async def create_board(
    session: AsyncSession,
    *,
    user_id: UUID,
    payload: BoardCreate,
) -> Board:
    """Create a board; the creator becomes its Admin."""
    if payload.workspace_id is not None:
        await require_workspace_permission(
            session,
            workspace_id=payload.workspace_id,
            user_id=user_id,
            permission=WorkspacePermission.CREATE_BOARD,
        )
    board = Board(
        title=payload.title,
        description=payload.description,
        visibility=payload.visibility.value,
        workspace_id=payload.workspace_id,
    )
    session.add(board)
    await session.flush()
    session.add(BoardMember(board_id=board.id, user_id=user_id, role=BoardRole.ADMIN.value))
    await session.commit()
    await session.refresh(board)
    logger.info("board.created board_id=%s user_id=%s", board.id, user_id)
    return board


def my_boards_statement(
    *,
    user_id: UUID,
    keyword: str | None = None,
    workspace_id: UUID | None = None,
) -> Select[Any]:
    """Live boards where ``user_id`` holds an explicit membership."""
    statement = (
        select(Board)
        .join(BoardMember, col(BoardMember.board_id) == col(Board.id))
        .where(col(BoardMember.user_id) == user_id)
        .where(col(Board.is_destroyed).is_(False))
    )
    if workspace_id is not None:
        statement = statement.where(col(Board.workspace_id) == workspace_id)
    if keyword:
        statement = statement.where(col(Board.title).ilike(f"%{keyword.strip()}%"))
    return statement.order_by(col(Board.updated_at).desc())


async def update_board(
    session: AsyncSession,
    *,
    board: Board,
    user_id: UUID,
    payload: BoardUpdate,
) -> Board:
    """Apply field updates; only a reopen is accepted while the board is closed."""
    updates = payload.model_dump(exclude_unset=True)
    if board.is_destroyed and updates != {"is_destroyed": False}:
        raise ForbiddenError(BOARD_CLOSED_MESSAGE)
    if updates.get("workspace_id") is not None and updates["workspace_id"] != board.workspace_id:
        await require_workspace_permission(
            session,
            workspace_id=updates["workspace_id"],
            user_id=user_id,
            permission=WorkspacePermission.CREATE_BOARD,
        )
    if "visibility" in updates:
        updates["visibility"] = updates["visibility"].value
    updates["updated_at"] = utcnow()
    return await crud.patch(session, board, updates)


async def _count_admins(session: AsyncSession, board_id: UUID) -> int:
    statement = (
        select(func.count())
        .select_from(BoardMember)
        .where(col(BoardMember.board_id) == board_id)
        .where(col(BoardMember.role) == BoardRole.ADMIN.value)
    )
    return int((await session.exec(statement)).one())


async def edit_board_member_role(
    session: AsyncSession,
    *,
    board: Board,
    user_id: UUID,
    role: BoardRole,
) -> BoardMember:
    assert_board_is_open(board)
    membership = await get_board_membership(session, board_id=board.id, user_id=user_id)
    if membership is None:
        raise NotFoundError("Board member not found")
    if (
        membership.role == BoardRole.ADMIN.value
        and role != BoardRole.ADMIN
        and await _count_admins(session, board.id) <= 1
    ):
        raise ConflictError("Board must keep at least one admin")
    membership.role = role.value
    board.updated_at = utcnow()
    session.add(membership)
    session.add(board)
    await session.commit()
    await session.refresh(membership)
    return membership


async def leave_board(session: AsyncSession, *, board: Board, user_id: UUID) -> None:
    membership = await get_board_membership(session, board_id=board.id, user_id=user_id)
    if membership is None:
        raise NotFoundError("Board member not found")
    if membership.role == BoardRole.ADMIN.value and await _count_admins(session, board.id) <= 1:
        raise ConflictError("The last board admin cannot leave the board")
    await session.delete(membership)
    board.updated_at = utcnow()
    session.add(board)
    await session.commit()


async def delete_board(session: AsyncSession, *, board: Board) -> None:
    """Hard-delete a board with its columns, cards, memberships, and invitations."""
    await crud.delete_where(session, Card, col(Card.board_id) == board.id, commit=False)
    await crud.delete_where(
        session, BoardColumn, col(BoardColumn.board_id) == board.id, commit=False
    )
    await crud.delete_where(
        session, BoardMember, col(BoardMember.board_id) == board.id, commit=False
    )
    await crud.delete_where(
        session, Invitation, col(Invitation.board_id) == board.id, commit=False
    )
    await crud.delete_where(session, Board, col(Board.id) == board.id, commit=False)
    await session.commit()
    logger.info("board.deleted board_id=%s", board.id)
