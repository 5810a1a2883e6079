"""Board invitations: creation, listing, token verification, and responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from trellone.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from trellone.core.logging import get_logger
from trellone.core.security import create_invite_token, decode_invite_token
from trellone.core.time import utcnow
from trellone.db import crud
from trellone.models.board_members import BoardMember
from trellone.models.boards import Board
from trellone.models.invitations import BoardInvitationStatus, Invitation
from trellone.models.workspace_members import WorkspaceMember
from trellone.schemas.invitations import InvitationBoardSummary, InvitationDetailRead
from trellone.schemas.users import UserPublic
from trellone.services.boards import assert_board_is_open, get_board_membership, get_board_or_404
from trellone.services.permissions import BoardRole
from trellone.services.users import get_user_by_email, get_users_by_ids, public_profile

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.sql import Select
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.models.users import User
    from trellone.schemas.invitations import BoardInvitationCreate

ALREADY_RESOLVED_MESSAGE = "Invitation has already been resolved"

logger = get_logger(__name__)


def board_invitation_payload(invitation: Invitation) -> dict[str, Any]:
    """Serialize an invitation with its ``board_invitation`` sub-object."""
    return {
        "id": invitation.id,
        "inviter_id": invitation.inviter_id,
        "invitee_id": invitation.invitee_id,
        "type": invitation.type,
        "board_invitation": {"board_id": invitation.board_id, "status": invitation.status},
        "created_at": invitation.created_at,
        "updated_at": invitation.updated_at,
    }


async def create_board_invitation(
    session: AsyncSession,
    *,
    inviter: User,
    payload: BoardInvitationCreate,
) -> Invitation:
    """Create a Pending invitation and its signed one-time token."""
    board = await get_board_or_404(session, payload.board_id)
    assert_board_is_open(board)
    if await get_board_membership(session, board_id=board.id, user_id=inviter.id) is None:
        raise ForbiddenError("User does not have access to board")

    invitee = await get_user_by_email(session, str(payload.invitee_email))
    if invitee is None:
        raise ValidationError(
            "Invitee not found or not registered an account",
            errors={"invitee_email": "not registered"},
        )
    if invitee.id == inviter.id:
        raise ValidationError("You cannot invite yourself", errors={"invitee_email": "self"})
    if await get_board_membership(session, board_id=board.id, user_id=invitee.id) is not None:
        raise ConflictError("Invitee is already a member of this board")
    pending = await Invitation.objects.filter_by(
        board_id=board.id,
        invitee_id=invitee.id,
        status=BoardInvitationStatus.PENDING.value,
    ).first(session)
    if pending is not None:
        raise ConflictError("Invitee already has a pending invitation to this board")

    invitation = Invitation(inviter_id=inviter.id, invitee_id=invitee.id, board_id=board.id)
    session.add(invitation)
    await session.flush()
    invitation.invite_token = create_invite_token(
        inviter_id=inviter.id,
        invitation_id=invitation.id,
    )
    session.add(invitation)
    await session.commit()
    await session.refresh(invitation)
    logger.info(
        "invitation.created invitation_id=%s board_id=%s inviter_id=%s",
        invitation.id,
        board.id,
        inviter.id,
    )
    return invitation


def my_invitations_statement(*, user_id: UUID) -> Select[Any]:
    return (
        select(Invitation)
        .where(col(Invitation.invitee_id) == user_id)
        .order_by(col(Invitation.created_at).desc())
    )


async def hydrate_invitations(
    session: AsyncSession,
    invitations: Sequence[Invitation],
) -> list[InvitationDetailRead]:
    """Attach public inviter/invitee profiles and a board summary."""
    user_ids = [i.inviter_id for i in invitations] + [i.invitee_id for i in invitations]
    users = await get_users_by_ids(session, user_ids)
    board_ids = list({i.board_id for i in invitations})
    boards = {b.id: b for b in await Board.objects.by_ids(board_ids).all(session)}

    items: list[InvitationDetailRead] = []
    for invitation in invitations:
        inviter = users.get(invitation.inviter_id)
        invitee = users.get(invitation.invitee_id)
        board = boards.get(invitation.board_id)
        items.append(
            InvitationDetailRead.model_validate(
                {
                    **board_invitation_payload(invitation),
                    "inviter": UserPublic.model_validate(public_profile(inviter))
                    if inviter
                    else None,
                    "invitee": UserPublic.model_validate(public_profile(invitee))
                    if invitee
                    else None,
                    "board": InvitationBoardSummary(
                        id=board.id,
                        title=board.title,
                        cover_photo=board.cover_photo,
                    )
                    if board
                    else None,
                },
            ),
        )
    return items


async def verify_invitation(session: AsyncSession, *, invite_token: str) -> Invitation:
    """Return the invitation a token was issued for, if the token is still current."""
    claims = decode_invite_token(invite_token)
    invitation = await Invitation.objects.by_id(claims.invitation_id).first(session)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.inviter_id != claims.inviter_id or invitation.invite_token != invite_token:
        raise UnauthorizedError("Invite token is invalid or has already been used")
    return invitation


async def _ensure_workspace_guest(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> None:
    await crud.get_or_create(
        session,
        WorkspaceMember,
        defaults={"role": None},
        commit=False,
        workspace_id=workspace_id,
        user_id=user_id,
    )


async def respond_to_board_invitation(
    session: AsyncSession,
    *,
    invitation_id: UUID,
    user_id: UUID,
    status: BoardInvitationStatus,
) -> Invitation:
    """Accept or reject a Pending invitation addressed to ``user_id``.

    Resolution is terminal: responding again raises ``ConflictError``. Accepting
    adds the invitee as a board Member at most once and, for workspace boards,
    as a workspace guest when they hold no standing there yet.
    """
    if status == BoardInvitationStatus.PENDING:
        raise ValidationError(
            "Invitation status must be ACCEPTED or REJECTED",
            errors={"status": "invalid"},
        )
    invitation = await Invitation.objects.by_id(invitation_id).first(session)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.invitee_id != user_id:
        raise ForbiddenError("Only the invitee can respond to this invitation")
    if invitation.status != BoardInvitationStatus.PENDING.value:
        raise ConflictError(ALREADY_RESOLVED_MESSAGE)

    if status == BoardInvitationStatus.ACCEPTED:
        board = await get_board_or_404(session, invitation.board_id)
        assert_board_is_open(board)
        if await get_board_membership(session, board_id=board.id, user_id=user_id) is None:
            session.add(
                BoardMember(board_id=board.id, user_id=user_id, role=BoardRole.MEMBER.value),
            )
        if board.workspace_id is not None:
            await _ensure_workspace_guest(
                session,
                workspace_id=board.workspace_id,
                user_id=user_id,
            )
        board.updated_at = utcnow()
        session.add(board)

    invitation.status = status.value
    invitation.invite_token = ""
    invitation.updated_at = utcnow()
    session.add(invitation)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info(
            "invitation.respond.conflict invitation_id=%s user_id=%s",
            invitation_id,
            user_id,
        )
        raise ConflictError(ALREADY_RESOLVED_MESSAGE) from exc
    await session.refresh(invitation)
    logger.info(
        "invitation.resolved invitation_id=%s status=%s",
        invitation.id,
        invitation.status,
    )
    return invitation
