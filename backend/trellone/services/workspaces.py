"""Workspace lifecycle plus member and guest management.

A workspace row per user is either a member (``role`` set) or a guest
(``role`` is ``None``). Guests exist only through board memberships, so the
removal paths below demote or drop rows depending on remaining boards.
"""

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
from trellone.models.workspace_members import WorkspaceMember
from trellone.models.workspaces import Workspace
from trellone.schemas.users import UserPublic
from trellone.schemas.workspaces import (
    WorkspaceBoardSummary,
    WorkspaceDetailRead,
    WorkspaceListItem,
    WorkspaceMemberView,
)
from trellone.services.permissions import BoardRole, WorkspaceRole
from trellone.services.users import get_users_by_ids, merge_member_profile, public_profile

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.sql import Select
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.schemas.workspaces import WorkspaceCreate, WorkspaceUpdate

logger = get_logger(__name__)


async def get_workspace_or_404(session: AsyncSession, workspace_id: UUID) -> Workspace:
    workspace = (
        await Workspace.objects.by_id(workspace_id)
        .filter(col(Workspace.is_destroyed).is_(False))
        .first(session)
    )
    if workspace is None:
        raise NotFoundError("Workspace not found")
    return workspace


async def get_workspace_row(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> WorkspaceMember | None:
    return await WorkspaceMember.objects.filter_by(
        workspace_id=workspace_id,
        user_id=user_id,
    ).first(session)


async def _require_member_row(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> WorkspaceMember:
    row = await get_workspace_row(session, workspace_id=workspace_id, user_id=user_id)
    if row is None or row.role is None:
        raise NotFoundError("Workspace member not found")
    return row


async def _require_guest_row(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> WorkspaceMember:
    row = await get_workspace_row(session, workspace_id=workspace_id, user_id=user_id)
    if row is None or row.role is not None:
        raise NotFoundError("Workspace guest not found")
    return row


async def _count_admins(session: AsyncSession, workspace_id: UUID) -> int:
    statement = (
        select(func.count())
        .select_from(WorkspaceMember)
        .where(col(WorkspaceMember.workspace_id) == workspace_id)
        .where(col(WorkspaceMember.role) == WorkspaceRole.ADMIN.value)
    )
    return int((await session.exec(statement)).one())


async def _guard_last_admin(session: AsyncSession, row: WorkspaceMember) -> None:
    if row.role != WorkspaceRole.ADMIN.value:
        return
    if await _count_admins(session, row.workspace_id) <= 1:
        raise ConflictError("Workspace must keep at least one admin")


async def user_board_ids_in_workspace(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
    exclude_board_id: UUID | None = None,
) -> list[UUID]:
    """Ids of live workspace boards where ``user_id`` holds an explicit membership."""
    statement = (
        select(Board.id)
        .join(BoardMember, col(BoardMember.board_id) == col(Board.id))
        .where(col(Board.workspace_id) == workspace_id)
        .where(col(Board.is_destroyed).is_(False))
        .where(col(BoardMember.user_id) == user_id)
    )
    if exclude_board_id is not None:
        statement = statement.where(col(Board.id) != exclude_board_id)
    return list(await session.exec(statement))


async def _get_workspace_board(
    session: AsyncSession,
    *,
    workspace: Workspace,
    board_id: UUID,
) -> Board:
    board = await Board.objects.by_id(board_id).filter_by(workspace_id=workspace.id).first(session)
    if board is None:
        raise NotFoundError("Board not found")
    return board


def _touch(session: AsyncSession, workspace: Workspace) -> None:
    workspace.updated_at = utcnow()
    session.add(workspace)


async def create_workspace(
    session: AsyncSession,
    *,
    user_id: UUID,
    payload: WorkspaceCreate,
) -> Workspace:
    """Create a workspace; the creator becomes its Admin."""
    workspace = Workspace(
        title=payload.title,
        description=payload.description,
        visibility=payload.visibility.value,
    )
    session.add(workspace)
    await session.flush()
    session.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_id=user_id,
            role=WorkspaceRole.ADMIN.value,
        ),
    )
    await session.commit()
    await session.refresh(workspace)
    logger.info("workspace.created workspace_id=%s user_id=%s", workspace.id, user_id)
    return workspace


def my_workspaces_statement(*, user_id: UUID) -> Select[Any]:
    """Live workspaces where ``user_id`` is a member or a guest."""
    return (
        select(Workspace)
        .join(WorkspaceMember, col(WorkspaceMember.workspace_id) == col(Workspace.id))
        .where(col(WorkspaceMember.user_id) == user_id)
        .where(col(Workspace.is_destroyed).is_(False))
        .order_by(col(Workspace.created_at).desc())
    )


async def hydrate_workspace_list(
    session: AsyncSession,
    *,
    workspaces: Sequence[Workspace],
    user_id: UUID,
) -> list[WorkspaceListItem]:
    """Attach to each workspace the live boards the caller belongs to."""
    workspace_ids = [w.id for w in workspaces]
    boards_by_workspace: dict[UUID, list[WorkspaceBoardSummary]] = {w: [] for w in workspace_ids}
    if workspace_ids:
        statement = (
            select(Board)
            .join(BoardMember, col(BoardMember.board_id) == col(Board.id))
            .where(col(Board.workspace_id).in_(workspace_ids))
            .where(col(Board.is_destroyed).is_(False))
            .where(col(BoardMember.user_id) == user_id)
            .order_by(col(Board.created_at).asc())
        )
        for board in await session.exec(statement):
            if board.workspace_id is None:
                continue
            boards_by_workspace[board.workspace_id].append(
                WorkspaceBoardSummary(
                    id=board.id,
                    title=board.title,
                    cover_photo=board.cover_photo,
                ),
            )
    return [
        WorkspaceListItem.model_validate(
            {**workspace.model_dump(), "boards": boards_by_workspace.get(workspace.id, [])},
        )
        for workspace in workspaces
    ]


async def get_workspace_detail(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> WorkspaceDetailRead:
    """Hydrated workspace for a member or guest.

    Members see every live board; guests only the boards they belong to.
    """
    workspace = await get_workspace_or_404(session, workspace_id)
    rows = await WorkspaceMember.objects.filter_by(workspace_id=workspace.id).all(session)
    caller = next((row for row in rows if row.user_id == user_id), None)
    if caller is None:
        raise ForbiddenError("You are not a member of this workspace")

    users = await get_users_by_ids(session, (row.user_id for row in rows))
    members: list[WorkspaceMemberView] = []
    guests: list[UserPublic] = []
    for row in sorted(rows, key=lambda r: r.joined_at):
        user = users.get(row.user_id)
        if user is None:
            continue
        if row.role is None:
            guests.append(UserPublic.model_validate(public_profile(user)))
            continue
        members.append(
            WorkspaceMemberView.model_validate(
                merge_member_profile(
                    {"user_id": row.user_id, "role": row.role, "joined_at": row.joined_at},
                    public_profile(user),
                ),
            ),
        )

    board_query = (
        Board.objects.filter_by(workspace_id=workspace.id)
        .filter(col(Board.is_destroyed).is_(False))
        .order_by(col(Board.created_at).asc())
    )
    if caller.role is None:
        visible = await user_board_ids_in_workspace(
            session, workspace_id=workspace.id, user_id=user_id
        )
        board_query = board_query.filter(col(Board.id).in_(visible))
    boards = await board_query.all(session)

    return WorkspaceDetailRead.model_validate(
        {
            **workspace.model_dump(),
            "members": members,
            "guests": guests,
            "boards": [
                WorkspaceBoardSummary(id=b.id, title=b.title, cover_photo=b.cover_photo)
                for b in boards
            ],
        },
    )


async def update_workspace(
    session: AsyncSession,
    *,
    workspace: Workspace,
    payload: WorkspaceUpdate,
) -> Workspace:
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "visibility" in updates:
        updates["visibility"] = updates["visibility"].value
    updates["updated_at"] = utcnow()
    return await crud.patch(session, workspace, updates)


async def edit_member_role(
    session: AsyncSession,
    *,
    workspace: Workspace,
    user_id: UUID,
    role: WorkspaceRole,
) -> WorkspaceMember:
    row = await _require_member_row(session, workspace_id=workspace.id, user_id=user_id)
    if role != WorkspaceRole.ADMIN:
        await _guard_last_admin(session, row)
    row.role = role.value
    session.add(row)
    _touch(session, workspace)
    await session.commit()
    await session.refresh(row)
    return row


async def _drop_board_memberships(
    session: AsyncSession,
    *,
    board_ids: Sequence[UUID],
    user_id: UUID,
) -> None:
    if not board_ids:
        return
    await crud.delete_where(
        session,
        BoardMember,
        col(BoardMember.board_id).in_(list(board_ids)),
        col(BoardMember.user_id) == user_id,
        commit=False,
    )


async def _remove_member_row(session: AsyncSession, row: WorkspaceMember) -> bool:
    """Demote to guest when the user still has boards here, otherwise drop the row.

    Returns ``True`` when the user stays on as a guest.
    """
    remaining = await user_board_ids_in_workspace(
        session, workspace_id=row.workspace_id, user_id=row.user_id
    )
    if remaining:
        row.role = None
        session.add(row)
        return True
    await session.delete(row)
    return False


async def leave_workspace(session: AsyncSession, *, workspace: Workspace, user_id: UUID) -> None:
    row = await get_workspace_row(session, workspace_id=workspace.id, user_id=user_id)
    if row is None:
        raise NotFoundError("Workspace member not found")
    if row.role is None:
        board_ids = await user_board_ids_in_workspace(
            session, workspace_id=workspace.id, user_id=user_id
        )
        await _drop_board_memberships(session, board_ids=board_ids, user_id=user_id)
        await session.delete(row)
    else:
        await _guard_last_admin(session, row)
        await _remove_member_row(session, row)
    _touch(session, workspace)
    await session.commit()
    logger.info("workspace.left workspace_id=%s user_id=%s", workspace.id, user_id)


async def remove_workspace_member(
    session: AsyncSession,
    *,
    workspace: Workspace,
    user_id: UUID,
) -> bool:
    """Remove a member; returns ``True`` when they were kept as a guest."""
    row = await _require_member_row(session, workspace_id=workspace.id, user_id=user_id)
    await _guard_last_admin(session, row)
    kept_as_guest = await _remove_member_row(session, row)
    _touch(session, workspace)
    await session.commit()
    return kept_as_guest


async def _guard_last_board_admin(session: AsyncSession, membership: BoardMember) -> None:
    if membership.role != BoardRole.ADMIN.value:
        return
    statement = (
        select(func.count())
        .select_from(BoardMember)
        .where(col(BoardMember.board_id) == membership.board_id)
        .where(col(BoardMember.role) == BoardRole.ADMIN.value)
    )
    if int((await session.exec(statement)).one()) <= 1:
        raise ConflictError("Board must keep at least one admin")


async def _pop_board_membership(
    session: AsyncSession,
    *,
    workspace: Workspace,
    board_id: UUID,
    user_id: UUID,
) -> None:
    board = await _get_workspace_board(session, workspace=workspace, board_id=board_id)
    membership = await BoardMember.objects.filter_by(board_id=board.id, user_id=user_id).first(
        session
    )
    if membership is None:
        raise NotFoundError("Board member not found")
    await _guard_last_board_admin(session, membership)
    await session.delete(membership)
    board.updated_at = utcnow()
    session.add(board)


async def remove_member_from_board(
    session: AsyncSession,
    *,
    workspace: Workspace,
    board_id: UUID,
    user_id: UUID,
) -> None:
    """Remove a member from one board; drop their workspace row when no boards remain."""
    row = await _require_member_row(session, workspace_id=workspace.id, user_id=user_id)
    await _pop_board_membership(session, workspace=workspace, board_id=board_id, user_id=user_id)
    remaining = await user_board_ids_in_workspace(
        session, workspace_id=workspace.id, user_id=user_id, exclude_board_id=board_id
    )
    if not remaining:
        await _guard_last_admin(session, row)
        await session.delete(row)
    _touch(session, workspace)
    await session.commit()


async def add_guest_to_workspace(
    session: AsyncSession,
    *,
    workspace: Workspace,
    user_id: UUID,
) -> WorkspaceMember:
    """Promote a guest to a Normal member."""
    row = await _require_guest_row(session, workspace_id=workspace.id, user_id=user_id)
    row.role = WorkspaceRole.NORMAL.value
    row.joined_at = utcnow()
    session.add(row)
    _touch(session, workspace)
    await session.commit()
    await session.refresh(row)
    return row


async def remove_guest_from_workspace(
    session: AsyncSession,
    *,
    workspace: Workspace,
    user_id: UUID,
) -> list[UUID]:
    """Remove a guest and all of their workspace board memberships."""
    row = await _require_guest_row(session, workspace_id=workspace.id, user_id=user_id)
    board_ids = await user_board_ids_in_workspace(
        session, workspace_id=workspace.id, user_id=user_id
    )
    await _drop_board_memberships(session, board_ids=board_ids, user_id=user_id)
    await session.delete(row)
    _touch(session, workspace)
    await session.commit()
    return board_ids


async def remove_guest_from_board(
    session: AsyncSession,
    *,
    workspace: Workspace,
    board_id: UUID,
    user_id: UUID,
) -> None:
    """Remove a guest from one board; the guest row goes with their last board."""
    row = await _require_guest_row(session, workspace_id=workspace.id, user_id=user_id)
    await _pop_board_membership(session, workspace=workspace, board_id=board_id, user_id=user_id)
    remaining = await user_board_ids_in_workspace(
        session, workspace_id=workspace.id, user_id=user_id, exclude_board_id=board_id
    )
    if not remaining:
        await session.delete(row)
    _touch(session, workspace)
    await session.commit()


async def join_workspace_board(
    session: AsyncSession,
    *,
    workspace: Workspace,
    board_id: UUID,
    user_id: UUID,
) -> BoardMember:
    board = await _get_workspace_board(session, workspace=workspace, board_id=board_id)
    if board.is_destroyed:
        raise ForbiddenError("Board is closed, reopen required")
    existing = await BoardMember.objects.filter_by(board_id=board.id, user_id=user_id).first(
        session
    )
    if existing is not None:
        raise ConflictError("User is already a member of this board")
    membership = BoardMember(board_id=board.id, user_id=user_id, role=BoardRole.MEMBER.value)
    board.updated_at = utcnow()
    session.add(membership)
    session.add(board)
    await session.commit()
    await session.refresh(membership)
    return membership


async def delete_workspace(session: AsyncSession, *, workspace: Workspace) -> None:
    """Delete a workspace; its boards are detached and closed rather than deleted."""
    now = utcnow()
    boards = await Board.objects.filter_by(workspace_id=workspace.id).all(session)
    for board in boards:
        board.workspace_id = None
        board.is_destroyed = True
        board.updated_at = now
        session.add(board)
    await session.flush()
    await crud.delete_where(
        session,
        WorkspaceMember,
        col(WorkspaceMember.workspace_id) == workspace.id,
        commit=False,
    )
    await session.delete(workspace)
    await session.commit()
    logger.info(
        "workspace.deleted workspace_id=%s detached_boards=%s",
        workspace.id,
        len(boards),
    )
