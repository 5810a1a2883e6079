"""Access-token authentication for HTTP requests and WebSocket handshakes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trellone.core.config import settings
from trellone.core.errors import UnauthorizedError
from trellone.core.logging import get_logger
from trellone.core.security import AccessTokenPayload, decode_access_token
from trellone.db.session import get_session
from trellone.models.users import User

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)


@dataclass
class AuthContext:
    """Authenticated user resolved from an access token."""

    user: User
    token: AccessTokenPayload


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def extract_access_token(
    *,
    cookies: Mapping[str, str],
    authorization: str | None,
) -> str | None:
    """Pick the access token from the cookie first, then the Bearer header."""
    cookie_token = (cookies.get(settings.access_token_cookie_name) or "").strip()
    if cookie_token:
        return cookie_token
    return _extract_bearer_token(authorization)


async def authenticate_token(session: AsyncSession, token: str | None) -> AuthContext:
    """Verify ``token`` and load its user, raising ``UnauthorizedError`` otherwise."""
    if token is None:
        raise UnauthorizedError("Access token is required")
    payload = decode_access_token(token)
    user = await User.objects.by_id(payload.user_id).first(session)
    if user is None:
        logger.info("auth.user_missing user_id=%s", payload.user_id)
        raise UnauthorizedError("User not found")
    return AuthContext(user=user, token=payload)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the authenticated user for the current request."""
    token = extract_access_token(
        cookies=request.cookies,
        authorization=request.headers.get("Authorization"),
    )
    if token is None and credentials is not None:
        token = credentials.credentials
    return await authenticate_token(session, token)
