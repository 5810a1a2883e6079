"""Effective-role resolution for boards and workspaces.

Resolution for a board:

1. An explicit board membership always wins.
2. Without one, a workspace member inherits a board role from their workspace
   role (Admin → Admin, Normal → Member).
3. Guests never inherit; they either hold an explicit board role or none.

The pure resolvers operate on pre-loaded access snapshots so they can be tested
without a database; the async helpers load snapshots and enforce permissions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlmodel import col

from trellone.core.errors import ForbiddenError, NotFoundError
from trellone.core.logging import get_logger
from trellone.models.board_members import BoardMember
from trellone.models.workspace_members import WorkspaceMember
from trellone.models.workspaces import Workspace
from trellone.services.permissions import (
    BOARD_ROLE_PERMISSIONS,
    WORKSPACE_ROLE_PERMISSIONS,
    WORKSPACE_TO_BOARD_ROLE,
    BoardPermission,
    BoardRole,
    WorkspacePermission,
    WorkspaceRole,
    parse_board_role,
    parse_workspace_role,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.models.boards import Board

# Explicit board roles take precedence over inherited workspace roles.
RESPECT_BOARD_EXPLICIT_OVERRIDES = True

logger = get_logger(__name__)


@dataclass(frozen=True)
class BoardAccess:
    """A board together with its explicit membership rows."""

    board: Board
    members: tuple[BoardMember, ...] = ()


@dataclass(frozen=True)
class WorkspaceAccess:
    """A workspace together with its member and guest rows."""

    workspace: Workspace
    members: tuple[WorkspaceMember, ...] = ()


@dataclass(frozen=True)
class WorkspaceStanding:
    """A user's position in a workspace: member role, guest, or neither."""

    role: WorkspaceRole | None = None
    is_guest: bool = False


def get_explicit_board_role(members: Iterable[BoardMember], user_id: UUID) -> BoardRole | None:
    for member in members:
        if member.user_id == user_id:
            return parse_board_role(member.role)
    return None


def get_workspace_standing(
    members: Iterable[WorkspaceMember],
    user_id: UUID,
) -> WorkspaceStanding:
    for member in members:
        if member.user_id != user_id:
            continue
        if member.role is None:
            return WorkspaceStanding(is_guest=True)
        return WorkspaceStanding(role=parse_workspace_role(member.role))
    return WorkspaceStanding()


def resolve_effective_board_role(
    board: BoardAccess,
    workspace: WorkspaceAccess | None,
    user_id: UUID,
) -> BoardRole | None:
    """Return the role governing ``user_id`` on ``board``, or ``None``."""
    explicit_role = get_explicit_board_role(board.members, user_id)
    if explicit_role is not None and RESPECT_BOARD_EXPLICIT_OVERRIDES:
        return explicit_role
    if workspace is None:
        return explicit_role

    standing = get_workspace_standing(workspace.members, user_id)
    if standing.role is None:
        return explicit_role
    if explicit_role is None:
        return WORKSPACE_TO_BOARD_ROLE[standing.role]
    return explicit_role


def has_board_permission(
    user_id: UUID,
    board: BoardAccess,
    permission: BoardPermission,
    workspace: WorkspaceAccess | None = None,
) -> bool:
    role = resolve_effective_board_role(board, workspace, user_id)
    if role is None:
        return False
    return permission in BOARD_ROLE_PERMISSIONS[role]


def has_workspace_permission(
    user_id: UUID,
    workspace: WorkspaceAccess,
    permission: WorkspacePermission,
) -> bool:
    """Check direct workspace membership only; guests always fail."""
    standing = get_workspace_standing(workspace.members, user_id)
    if standing.role is None:
        return False
    return permission in WORKSPACE_ROLE_PERMISSIONS[standing.role]


async def load_board_access(session: AsyncSession, board: Board) -> BoardAccess:
    members = await BoardMember.objects.filter_by(board_id=board.id).all(session)
    return BoardAccess(board=board, members=tuple(members))


async def load_workspace_access(
    session: AsyncSession,
    workspace_id: UUID | None,
) -> WorkspaceAccess | None:
    """Load a live workspace with its rows; detached or deleted workspaces yield ``None``."""
    if workspace_id is None:
        return None
    workspace = (
        await Workspace.objects.by_id(workspace_id)
        .filter(col(Workspace.is_destroyed).is_(False))
        .first(session)
    )
    if workspace is None:
        return None
    members = await WorkspaceMember.objects.filter_by(workspace_id=workspace.id).all(session)
    return WorkspaceAccess(workspace=workspace, members=tuple(members))


async def require_board_permission(
    session: AsyncSession,
    *,
    board: Board,
    user_id: UUID,
    permission: BoardPermission,
) -> BoardRole:
    """Resolve the caller's effective role and require ``permission`` on ``board``."""
    board_access = await load_board_access(session, board)
    workspace_access = await load_workspace_access(session, board.workspace_id)
    role = resolve_effective_board_role(board_access, workspace_access, user_id)
    if role is None or permission not in BOARD_ROLE_PERMISSIONS[role]:
        logger.info(
            "rbac.board.denied board_id=%s user_id=%s permission=%s role=%s",
            board.id,
            user_id,
            permission.value,
            role.value if role else None,
        )
        raise ForbiddenError("You do not have permission to perform this action")
    return role


async def require_workspace_permission(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
    permission: WorkspacePermission,
) -> WorkspaceAccess:
    """Require a direct workspace member holding ``permission``."""
    workspace_access = await load_workspace_access(session, workspace_id)
    if workspace_access is None:
        raise NotFoundError("Workspace not found")
    if not has_workspace_permission(user_id, workspace_access, permission):
        logger.info(
            "rbac.workspace.denied workspace_id=%s user_id=%s permission=%s",
            workspace_id,
            user_id,
            permission.value,
        )
        raise ForbiddenError("You do not have permission to perform this action")
    return workspace_access
