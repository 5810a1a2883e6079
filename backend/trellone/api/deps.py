"""Reusable FastAPI dependencies for auth and board/workspace access.

Board routes compose ``require_board(permission)``: it loads the board named by
the ``board_id`` path parameter, resolves the caller's effective role, and
rejects callers lacking ``permission``. Closed boards are rejected unless the
route opts in with ``allow_closed``. Column and card routes resolve their
board first and run the same check through ``authorize_board``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends

from trellone.core.auth import AuthContext, get_auth_context
from trellone.db.session import get_session
from trellone.services.boards import assert_board_is_open, get_board_or_404
from trellone.services.rbac import require_board_permission, require_workspace_permission
from trellone.services.workspaces import get_workspace_or_404

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.models.boards import Board
    from trellone.models.users import User
    from trellone.models.workspaces import Workspace
    from trellone.services.permissions import BoardPermission, BoardRole, WorkspacePermission

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)


@dataclass
class BoardContext:
    """Board plus the caller and the effective role that authorized them."""

    board: Board
    user: User
    role: BoardRole


@dataclass
class WorkspaceContext:
    workspace: Workspace
    user: User


async def authorize_board(
    session: AsyncSession,
    *,
    board: Board,
    user: User,
    permission: BoardPermission,
    allow_closed: bool = False,
) -> BoardContext:
    role = await require_board_permission(
        session,
        board=board,
        user_id=user.id,
        permission=permission,
    )
    if not allow_closed:
        assert_board_is_open(board)
    return BoardContext(board=board, user=user, role=role)


def require_board(
    permission: BoardPermission,
    *,
    allow_closed: bool = False,
) -> Callable[..., Awaitable[BoardContext]]:
    """Build a dependency enforcing ``permission`` on the path's ``board_id``."""

    async def _dependency(
        board_id: UUID,
        session: AsyncSession = SESSION_DEP,
        auth: AuthContext = AUTH_DEP,
    ) -> BoardContext:
        board = await get_board_or_404(session, board_id)
        return await authorize_board(
            session,
            board=board,
            user=auth.user,
            permission=permission,
            allow_closed=allow_closed,
        )

    return _dependency


def require_workspace(
    permission: WorkspacePermission,
) -> Callable[..., Awaitable[WorkspaceContext]]:
    """Build a dependency enforcing ``permission`` on the path's ``workspace_id``."""

    async def _dependency(
        workspace_id: UUID,
        session: AsyncSession = SESSION_DEP,
        auth: AuthContext = AUTH_DEP,
    ) -> WorkspaceContext:
        await require_workspace_permission(
            session,
            workspace_id=workspace_id,
            user_id=auth.user.id,
            permission=permission,
        )
        workspace = await get_workspace_or_404(session, workspace_id)
        return WorkspaceContext(workspace=workspace, user=auth.user)

    return _dependency
