"""Read-only access to the persisted role registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query

from trellone.core.auth import get_auth_context
from trellone.db.session import get_session
from trellone.schemas.roles import RoleRead
from trellone.services.permissions import RoleLevel
from trellone.services.roles import list_roles

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.core.auth import AuthContext

router = APIRouter(prefix="/roles", tags=["roles"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)
LEVEL_QUERY = Query(default=None)


@router.get("", response_model=list[RoleRead])
async def get_roles(
    level: RoleLevel | None = LEVEL_QUERY,
    session: AsyncSession = SESSION_DEP,
    _auth: AuthContext = AUTH_DEP,
) -> list[RoleRead]:
    roles = await list_roles(session, level=level)
    return [RoleRead.model_validate(role, from_attributes=True) for role in roles]
