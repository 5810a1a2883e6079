"""User profile endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from trellone.core.auth import get_auth_context
from trellone.schemas.users import UserPublic
from trellone.services.users import public_profile

if TYPE_CHECKING:
    from trellone.core.auth import AuthContext

router = APIRouter(prefix="/users", tags=["users"])
AUTH_DEP = Depends(get_auth_context)


@router.get("/me", response_model=UserPublic)
async def get_me(auth: AuthContext = AUTH_DEP) -> UserPublic:
    """Return the caller's public profile."""
    return UserPublic.model_validate(public_profile(auth.user))
