"""Workspace endpoints: lifecycle, members, guests, and board joins."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends

from trellone.api.deps import WorkspaceContext, require_workspace
from trellone.core.auth import get_auth_context
from trellone.db.pagination import paginate
from trellone.db.session import get_session
from trellone.schemas.common import OkResponse
from trellone.schemas.pagination import DefaultLimitOffsetPage
from trellone.schemas.workspaces import (
    GuestRemovalRead,
    WorkspaceCreate,
    WorkspaceDetailRead,
    WorkspaceListItem,
    WorkspaceMemberRoleUpdate,
    WorkspaceRead,
    WorkspaceUpdate,
)
from trellone.services import workspaces as workspace_service
from trellone.services.permissions import WorkspacePermission

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.core.auth import AuthContext
    from trellone.models.workspaces import Workspace

router = APIRouter(prefix="/workspaces", tags=["workspaces"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)
MANAGE_DEP = Depends(require_workspace(WorkspacePermission.MANAGE_WORKSPACE))
MANAGE_MEMBERS_DEP = Depends(require_workspace(WorkspacePermission.MANAGE_MEMBERS))
MANAGE_GUESTS_DEP = Depends(require_workspace(WorkspacePermission.MANAGE_GUESTS))
JOIN_BOARD_DEP = Depends(require_workspace(WorkspacePermission.JOIN_BOARD))
DELETE_DEP = Depends(require_workspace(WorkspacePermission.DELETE_WORKSPACE))


async def _detail(session: AsyncSession, ctx: WorkspaceContext) -> WorkspaceDetailRead:
    return await workspace_service.get_workspace_detail(
        session,
        workspace_id=ctx.workspace.id,
        user_id=ctx.user.id,
    )


@router.post("", response_model=WorkspaceRead)
async def create_workspace(
    payload: WorkspaceCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> WorkspaceRead:
    """Create a workspace with the caller as its Admin."""
    workspace = await workspace_service.create_workspace(
        session,
        user_id=auth.user.id,
        payload=payload,
    )
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.get("", response_model=DefaultLimitOffsetPage[WorkspaceListItem])
async def list_my_workspaces(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> LimitOffsetPage[WorkspaceListItem]:
    """List live workspaces where the caller is a member or guest."""
    statement = workspace_service.my_workspaces_statement(user_id=auth.user.id)

    async def _transform(items: Sequence[Workspace]) -> Sequence[WorkspaceListItem]:
        return await workspace_service.hydrate_workspace_list(
            session,
            workspaces=items,
            user_id=auth.user.id,
        )

    return await paginate(session, statement, transformer=_transform)


@router.get("/{workspace_id}", response_model=WorkspaceDetailRead)
async def get_workspace(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> WorkspaceDetailRead:
    return await workspace_service.get_workspace_detail(
        session,
        workspace_id=workspace_id,
        user_id=auth.user.id,
    )


@router.patch("/{workspace_id}", response_model=WorkspaceDetailRead)
async def update_workspace(
    payload: WorkspaceUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_DEP,
) -> WorkspaceDetailRead:
    await workspace_service.update_workspace(session, workspace=ctx.workspace, payload=payload)
    return await _detail(session, ctx)


@router.patch("/{workspace_id}/members/{user_id}", response_model=WorkspaceDetailRead)
async def edit_workspace_member_role(
    user_id: UUID,
    payload: WorkspaceMemberRoleUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_MEMBERS_DEP,
) -> WorkspaceDetailRead:
    await workspace_service.edit_member_role(
        session,
        workspace=ctx.workspace,
        user_id=user_id,
        role=payload.role,
    )
    return await _detail(session, ctx)


@router.post("/{workspace_id}/leave", response_model=OkResponse)
async def leave_workspace(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    """Leave a workspace as a member or guest."""
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    await workspace_service.leave_workspace(session, workspace=workspace, user_id=auth.user.id)
    return OkResponse()


@router.delete("/{workspace_id}/members/{user_id}", response_model=WorkspaceDetailRead)
async def remove_workspace_member(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_MEMBERS_DEP,
) -> WorkspaceDetailRead:
    """Remove a member; they stay on as a guest while they still hold boards here."""
    await workspace_service.remove_workspace_member(
        session,
        workspace=ctx.workspace,
        user_id=user_id,
    )
    return await _detail(session, ctx)


@router.delete(
    "/{workspace_id}/members/{user_id}/boards/{board_id}",
    response_model=WorkspaceDetailRead,
)
async def remove_member_from_board(
    user_id: UUID,
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_MEMBERS_DEP,
) -> WorkspaceDetailRead:
    await workspace_service.remove_member_from_board(
        session,
        workspace=ctx.workspace,
        board_id=board_id,
        user_id=user_id,
    )
    return await _detail(session, ctx)


@router.post("/{workspace_id}/guests/{user_id}", response_model=WorkspaceDetailRead)
async def add_guest_to_workspace(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_GUESTS_DEP,
) -> WorkspaceDetailRead:
    """Promote a guest to a Normal workspace member."""
    await workspace_service.add_guest_to_workspace(
        session,
        workspace=ctx.workspace,
        user_id=user_id,
    )
    return await _detail(session, ctx)


@router.delete("/{workspace_id}/guests/{user_id}", response_model=GuestRemovalRead)
async def remove_guest_from_workspace(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_GUESTS_DEP,
) -> GuestRemovalRead:
    board_ids = await workspace_service.remove_guest_from_workspace(
        session,
        workspace=ctx.workspace,
        user_id=user_id,
    )
    await session.refresh(ctx.workspace)
    return GuestRemovalRead(
        workspace=WorkspaceRead.model_validate(ctx.workspace, from_attributes=True),
        affected_board_ids=board_ids,
    )


@router.delete(
    "/{workspace_id}/guests/{user_id}/boards/{board_id}",
    response_model=WorkspaceDetailRead,
)
async def remove_guest_from_board(
    user_id: UUID,
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = MANAGE_GUESTS_DEP,
) -> WorkspaceDetailRead:
    await workspace_service.remove_guest_from_board(
        session,
        workspace=ctx.workspace,
        board_id=board_id,
        user_id=user_id,
    )
    return await _detail(session, ctx)


@router.post("/{workspace_id}/boards/{board_id}/join", response_model=WorkspaceDetailRead)
async def join_workspace_board(
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = JOIN_BOARD_DEP,
) -> WorkspaceDetailRead:
    """Join a workspace board as a Member."""
    await workspace_service.join_workspace_board(
        session,
        workspace=ctx.workspace,
        board_id=board_id,
        user_id=ctx.user.id,
    )
    return await _detail(session, ctx)


@router.delete("/{workspace_id}", response_model=OkResponse)
async def delete_workspace(
    session: AsyncSession = SESSION_DEP,
    ctx: WorkspaceContext = DELETE_DEP,
) -> OkResponse:
    """Delete a workspace; its boards are detached and closed."""
    await workspace_service.delete_workspace(session, workspace=ctx.workspace)
    return OkResponse()
