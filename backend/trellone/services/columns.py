"""Column create/update/delete keeping the board ordering array in sync."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from trellone.core.errors import NotFoundError
from trellone.core.logging import get_logger
from trellone.core.time import utcnow
from trellone.db import crud
from trellone.models.cards import Card
from trellone.models.columns import BoardColumn
from trellone.services.ordering import append_id, remove_id

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.models.boards import Board
    from trellone.schemas.columns import ColumnUpdate

logger = get_logger(__name__)


async def get_column_or_404(session: AsyncSession, column_id: UUID) -> BoardColumn:
    column = await BoardColumn.objects.by_id(column_id).first(session)
    if column is None:
        raise NotFoundError("Column not found")
    return column


async def create_column(session: AsyncSession, *, board: Board, title: str) -> BoardColumn:
    """Create a column and append its id to ``board.column_order_ids``."""
    column = BoardColumn(board_id=board.id, title=title)
    session.add(column)
    await session.flush()
    board.column_order_ids = append_id(board.column_order_ids, column.id)
    board.updated_at = utcnow()
    session.add(board)
    await session.commit()
    await session.refresh(column)
    await session.refresh(board)
    return column


async def update_column(
    session: AsyncSession,
    *,
    board: Board,
    column: BoardColumn,
    payload: ColumnUpdate,
) -> BoardColumn:
    """Update title or soft-delete flag.

    Soft-deleting a column drops it from the board ordering array; restoring it
    appends it again.
    """
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    now = utcnow()
    if "is_destroyed" in updates and updates["is_destroyed"] != column.is_destroyed:
        if updates["is_destroyed"]:
            board.column_order_ids = remove_id(board.column_order_ids, column.id)
        else:
            board.column_order_ids = append_id(board.column_order_ids, column.id)
        board.updated_at = now
        session.add(board)
    updates["updated_at"] = now
    return await crud.patch(session, column, updates)


async def delete_column(session: AsyncSession, *, board: Board, column: BoardColumn) -> None:
    """Hard-delete a column and its cards, removing it from the board order."""
    await crud.delete_where(session, Card, col(Card.column_id) == column.id, commit=False)
    board.column_order_ids = remove_id(board.column_order_ids, column.id)
    board.updated_at = utcnow()
    session.add(board)
    await session.delete(column)
    await session.commit()
    logger.info("column.deleted column_id=%s board_id=%s", column.id, board.id)
