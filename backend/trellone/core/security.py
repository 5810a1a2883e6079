"""JWT helpers for access-token verification and board invite tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt

from trellone.core.config import settings
from trellone.core.errors import TOKEN_EXPIRED, UnauthorizedError

ACCESS_TOKEN_TYPE = "access"
INVITE_TOKEN_TYPE = "invite"


@dataclass(frozen=True)
class AccessTokenPayload:
    """Verified access-token claims."""

    user_id: UUID
    expires_at: datetime | None


@dataclass(frozen=True)
class InviteTokenPayload:
    """Verified board invite-token claims."""

    inviter_id: UUID
    invitation_id: UUID


def _encode(claims: dict[str, Any], *, secret: str, expires_in: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, *, secret: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token has expired", error_code=TOKEN_EXPIRED) from exc
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Token is invalid") from exc


def _claim_uuid(claims: dict[str, Any], key: str) -> UUID:
    value = claims.get(key)
    if not isinstance(value, str):
        raise UnauthorizedError("Token is invalid")
    try:
        return UUID(value)
    except ValueError as exc:
        raise UnauthorizedError("Token is invalid") from exc


def create_access_token(user_id: UUID, *, expires_in: timedelta = timedelta(minutes=15)) -> str:
    """Issue an access token; used by tooling and tests, not by the public API."""
    return _encode(
        {"user_id": str(user_id), "token_type": ACCESS_TOKEN_TYPE},
        secret=settings.jwt_secret_access_token,
        expires_in=expires_in,
    )


def decode_access_token(token: str) -> AccessTokenPayload:
    """Verify an access token, raising ``UnauthorizedError`` on failure.

    Expired tokens carry ``error_code=TOKEN_EXPIRED`` so clients can refresh
    instead of signing the user out.
    """
    claims = _decode(token, secret=settings.jwt_secret_access_token)
    if claims.get("token_type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise UnauthorizedError("Token is invalid")
    exp = claims.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=UTC) if isinstance(exp, (int, float)) else None
    return AccessTokenPayload(user_id=_claim_uuid(claims, "user_id"), expires_at=expires_at)


def create_invite_token(*, inviter_id: UUID, invitation_id: UUID) -> str:
    return _encode(
        {
            "inviter_id": str(inviter_id),
            "invitation_id": str(invitation_id),
            "token_type": INVITE_TOKEN_TYPE,
        },
        secret=settings.jwt_secret_invite_token,
        expires_in=timedelta(days=settings.invite_token_expires_in_days),
    )


def decode_invite_token(token: str) -> InviteTokenPayload:
    claims = _decode(token, secret=settings.jwt_secret_invite_token)
    if claims.get("token_type") != INVITE_TOKEN_TYPE:
        raise UnauthorizedError("Token is invalid")
    return InviteTokenPayload(
        inviter_id=_claim_uuid(claims, "inviter_id"),
        invitation_id=_claim_uuid(claims, "invitation_id"),
    )
