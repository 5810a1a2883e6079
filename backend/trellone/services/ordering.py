"""Ordering arrays for board columns and column cards.

``Board.column_order_ids`` and ``BoardColumn.card_order_ids`` are the source of
truth for display order. Clients compute a new order locally and submit the full
sequence; this module only certifies that the submission is a pure permutation
of what is stored and then replaces the stored value.

The check is read-compare-write inside one session: two clients reordering the
same collection concurrently can still overwrite each other (last write wins).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from sqlmodel import col

from trellone.core.errors import ConflictError, NotFoundError, ValidationError
from trellone.core.logging import get_logger
from trellone.core.time import utcnow
from trellone.models.cards import Card
from trellone.models.columns import BoardColumn

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.models.boards import Board

REORDER_ONLY_MESSAGE = "You can only reorder {items}, not add or remove them"

logger = get_logger(__name__)


def is_valid_id(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True


def validate_reorder(
    current: Sequence[str],
    proposed: Sequence[str],
    *,
    field: str,
    items: str,
) -> list[str]:
    """Return ``proposed`` as a list when it is a permutation of ``current``.

    Raises ``ValidationError`` for an empty submission against a non-empty
    collection or for malformed ids, and ``ConflictError`` when the submission
    adds, drops, or duplicates ids.
    """
    if not proposed:
        if current:
            raise ValidationError(
                f"{field.replace('_', ' ').capitalize()} cannot be empty",
                errors={field: "cannot be empty"},
            )
        return []

    invalid = [value for value in proposed if not is_valid_id(value)]
    if invalid:
        raise ValidationError(
            f"Invalid {items[:-1]} id",
            errors={field: f"invalid ids: {', '.join(map(str, invalid))}"},
        )

    proposed_set = set(proposed)
    if (
        len(proposed) != len(current)
        or len(proposed_set) != len(proposed)
        or proposed_set != set(current)
    ):
        raise ConflictError(REORDER_ONLY_MESSAGE.format(items=items))
    return list(proposed)


def append_id(order_ids: Sequence[str], item_id: UUID) -> list[str]:
    value = str(item_id)
    if value in order_ids:
        return list(order_ids)
    return [*order_ids, value]


def remove_id(order_ids: Sequence[str], item_id: UUID) -> list[str]:
    value = str(item_id)
    return [existing for existing in order_ids if existing != value]


async def reorder_columns(
    session: AsyncSession,
    *,
    board: Board,
    column_order_ids: Sequence[str],
) -> Board:
    try:
        new_order = validate_reorder(
            board.column_order_ids,
            column_order_ids,
            field="column_order_ids",
            items="columns",
        )
    except ConflictError:
        logger.info("ordering.columns.rejected board_id=%s", board.id)
        raise
    board.column_order_ids = new_order
    board.updated_at = utcnow()
    session.add(board)
    await session.commit()
    await session.refresh(board)
    return board


async def reorder_cards(
    session: AsyncSession,
    *,
    column: BoardColumn,
    card_order_ids: Sequence[str],
) -> BoardColumn:
    try:
        new_order = validate_reorder(
            column.card_order_ids,
            card_order_ids,
            field="card_order_ids",
            items="cards",
        )
    except ConflictError:
        logger.info("ordering.cards.rejected column_id=%s", column.id)
        raise
    column.card_order_ids = new_order
    column.updated_at = utcnow()
    session.add(column)
    await session.commit()
    await session.refresh(column)
    return column


@dataclass(frozen=True)
class CardMove:
    """Submitted cross-column move: card plus both resulting order arrays."""

    card_id: UUID
    prev_column_id: UUID
    prev_card_order_ids: list[str]
    next_column_id: UUID
    next_card_order_ids: list[str]


@dataclass(frozen=True)
class CardMoveResult:
    card: Card
    prev_column: BoardColumn
    next_column: BoardColumn


async def _get_live_column(session: AsyncSession, *, board: Board, column_id: UUID) -> BoardColumn:
    column = (
        await BoardColumn.objects.by_id(column_id)
        .filter(col(BoardColumn.board_id) == board.id)
        .filter(col(BoardColumn.is_destroyed).is_(False))
        .first(session)
    )
    if column is None:
        raise NotFoundError("Column not found")
    return column


async def move_card_to_column(
    session: AsyncSession,
    *,
    board: Board,
    move: CardMove,
) -> CardMoveResult:
    """Move a card between two columns of ``board``.

    The source array must equal its stored value minus the card and the
    destination array its stored value plus the card, in any order the client
    chose. The card's column reference and both arrays are written in a single
    commit, so a failure leaves all three untouched.
    """
    if move.prev_column_id == move.next_column_id:
        raise ValidationError(
            "Use card reordering to move a card within one column",
            errors={"next_column_id": "must differ from prev_column_id"},
        )
    card = (
        await Card.objects.by_id(move.card_id)
        .filter(col(Card.board_id) == board.id)
        .filter(col(Card.is_archived).is_(False))
        .first(session)
    )
    if card is None:
        raise NotFoundError("Card not found")
    if card.column_id != move.prev_column_id:
        raise ConflictError("Card does not belong to the previous column")

    prev_column = await _get_live_column(session, board=board, column_id=move.prev_column_id)
    next_column = await _get_live_column(session, board=board, column_id=move.next_column_id)

    prev_order = validate_reorder(
        remove_id(prev_column.card_order_ids, card.id),
        move.prev_card_order_ids,
        field="prev_card_order_ids",
        items="cards",
    )
    next_order = validate_reorder(
        append_id(next_column.card_order_ids, card.id),
        move.next_card_order_ids,
        field="next_card_order_ids",
        items="cards",
    )

    now = utcnow()
    prev_column.card_order_ids = prev_order
    prev_column.updated_at = now
    next_column.card_order_ids = next_order
    next_column.updated_at = now
    card.column_id = next_column.id
    card.updated_at = now
    session.add(prev_column)
    session.add(next_column)
    session.add(card)
    await session.commit()
    for obj in (prev_column, next_column, card):
        await session.refresh(obj)
    logger.info(
        "ordering.card.moved card_id=%s from_column=%s to_column=%s",
        card.id,
        prev_column.id,
        next_column.id,
    )
    return CardMoveResult(card=card, prev_column=prev_column, next_column=next_column)
