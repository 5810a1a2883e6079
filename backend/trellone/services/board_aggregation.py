"""Hydrated board read model used when a client opens a board.

The board fetch embeds the membership check in its predicate: a board the
caller does not belong to is indistinguishable from a missing board.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from sqlmodel import col, select

from trellone.core.errors import NotFoundError
from trellone.core.logging import get_logger
from trellone.models.board_members import BoardMember
from trellone.models.boards import Board
from trellone.models.cards import Card
from trellone.models.columns import BoardColumn
from trellone.models.workspaces import Workspace
from trellone.schemas.boards import BoardDetailRead, BoardMemberView
from trellone.schemas.cards import CardRead
from trellone.schemas.columns import ColumnWithCards
from trellone.schemas.workspaces import WorkspaceBoardSummary, WorkspaceSummaryRead
from trellone.services.users import get_users_by_ids, merge_member_profile, public_profile

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


async def fetch_authorized_board(
    session: AsyncSession,
    *,
    board_id: UUID,
    user_id: UUID,
) -> Board | None:
    """Return the board only when ``user_id`` is an explicit member of it."""
    statement = (
        select(Board)
        .join(BoardMember, col(BoardMember.board_id) == col(Board.id))
        .where(col(Board.id) == board_id)
        .where(col(BoardMember.user_id) == user_id)
    )
    return (await session.exec(statement)).first()


def nest_cards_in_columns(
    columns: list[BoardColumn],
    cards: list[Card],
) -> list[ColumnWithCards]:
    """Group cards under their owning column; orphaned cards are dropped."""
    cards_by_column: dict[UUID, list[CardRead]] = defaultdict(list)
    for card in cards:
        cards_by_column[card.column_id].append(CardRead.model_validate(card, from_attributes=True))
    return [
        ColumnWithCards.model_validate(
            {
                **column.model_dump(),
                "cards": cards_by_column.get(column.id, []),
            },
        )
        for column in columns
    ]


async def _workspace_summary(
    session: AsyncSession,
    workspace_id: UUID | None,
) -> WorkspaceSummaryRead | None:
    if workspace_id is None:
        return None
    workspace = await Workspace.objects.by_id(workspace_id).first(session)
    if workspace is None:
        return None
    siblings = (
        await Board.objects.filter_by(workspace_id=workspace.id)
        .filter(col(Board.is_destroyed).is_(False))
        .order_by(col(Board.created_at).asc())
        .all(session)
    )
    return WorkspaceSummaryRead.model_validate(
        {
            **workspace.model_dump(),
            "boards": [
                WorkspaceBoardSummary(id=b.id, title=b.title, cover_photo=b.cover_photo)
                for b in siblings
            ],
        },
    )


async def _member_views(session: AsyncSession, board_id: UUID) -> list[BoardMemberView]:
    memberships = (
        await BoardMember.objects.filter_by(board_id=board_id)
        .order_by(col(BoardMember.joined_at).asc())
        .all(session)
    )
    users = await get_users_by_ids(session, (m.user_id for m in memberships))
    views: list[BoardMemberView] = []
    for membership in memberships:
        user = users.get(membership.user_id)
        if user is None:
            continue
        merged = merge_member_profile(
            {
                "user_id": membership.user_id,
                "role": membership.role,
                "joined_at": membership.joined_at,
            },
            public_profile(user),
        )
        views.append(BoardMemberView.model_validate(merged))
    return views


async def get_board_detail(
    session: AsyncSession,
    *,
    board_id: UUID,
    user_id: UUID,
) -> BoardDetailRead:
    """Assemble the hydrated board view or raise ``NotFoundError``."""
    board = await fetch_authorized_board(session, board_id=board_id, user_id=user_id)
    if board is None:
        logger.info("board.open.not_found board_id=%s user_id=%s", board_id, user_id)
        raise NotFoundError("Board not found")

    columns = (
        await BoardColumn.objects.filter_by(board_id=board.id)
        .filter(col(BoardColumn.is_destroyed).is_(False))
        .all(session)
    )
    cards = (
        await Card.objects.filter_by(board_id=board.id)
        .filter(col(Card.is_archived).is_(False))
        .all(session)
    )
    return BoardDetailRead.model_validate(
        {
            **board.model_dump(),
            "columns": nest_cards_in_columns(columns, cards),
            "members": await _member_views(session, board.id),
            "workspace": await _workspace_summary(session, board.workspace_id),
        },
    )
