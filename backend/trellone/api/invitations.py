"""Board invitation endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends

from trellone.core.auth import get_auth_context
from trellone.db.pagination import paginate
from trellone.db.session import get_session
from trellone.schemas.invitations import (
    BoardInvitationCreate,
    BoardInvitationUpdate,
    InvitationCreated,
    InvitationDetailRead,
    InvitationRead,
    InviteTokenVerify,
)
from trellone.schemas.pagination import DefaultLimitOffsetPage
from trellone.services import invitations as invitation_service

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.core.auth import AuthContext
    from trellone.models.invitations import Invitation

router = APIRouter(prefix="/invitations", tags=["invitations"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)


@router.post("/board", response_model=InvitationCreated)
async def create_board_invitation(
    payload: BoardInvitationCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> InvitationCreated:
    """Invite a registered user to a board the caller belongs to."""
    invitation = await invitation_service.create_board_invitation(
        session,
        inviter=auth.user,
        payload=payload,
    )
    return InvitationCreated.model_validate(
        {
            **invitation_service.board_invitation_payload(invitation),
            "invite_token": invitation.invite_token,
        },
    )


@router.get("", response_model=DefaultLimitOffsetPage[InvitationDetailRead])
async def list_my_invitations(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> LimitOffsetPage[InvitationDetailRead]:
    """List invitations addressed to the caller, newest first."""
    statement = invitation_service.my_invitations_statement(user_id=auth.user.id)

    async def _transform(items: Sequence[Invitation]) -> Sequence[InvitationDetailRead]:
        return await invitation_service.hydrate_invitations(session, items)

    return await paginate(session, statement, transformer=_transform)


@router.post("/verify", response_model=InvitationDetailRead)
async def verify_invitation(
    payload: InviteTokenVerify,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> InvitationDetailRead:
    invitation = await invitation_service.verify_invitation(
        session,
        invite_token=payload.invite_token,
    )
    items = await invitation_service.hydrate_invitations(session, [invitation])
    return items[0]


@router.patch("/board/{invitation_id}", response_model=InvitationRead)
async def respond_to_board_invitation(
    invitation_id: UUID,
    payload: BoardInvitationUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> InvitationRead:
    """Accept or reject an invitation; only the invitee may respond, once."""
    invitation = await invitation_service.respond_to_board_invitation(
        session,
        invitation_id=invitation_id,
        user_id=auth.user.id,
        status=payload.status,
    )
    return InvitationRead.model_validate(invitation_service.board_invitation_payload(invitation))
