"""User lookups and public-profile projection helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlmodel import col

from trellone.core.errors import NotFoundError
from trellone.models.users import SENSITIVE_USER_FIELDS, User

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


def public_profile(user: User) -> dict[str, Any]:
    """Return the user's fields minus credentials and security tokens."""
    return user.model_dump(exclude=set(SENSITIVE_USER_FIELDS))


def merge_member_profile(
    membership: Mapping[str, Any],
    profile: Mapping[str, Any],
) -> dict[str, Any]:
    """Overlay a public profile onto membership fields.

    Membership fields win on key collisions; sensitive user fields are dropped
    even if a caller passes a raw profile.
    """
    merged = {
        key: value for key, value in profile.items() if key not in SENSITIVE_USER_FIELDS
    }
    merged.update(membership)
    for key in SENSITIVE_USER_FIELDS:
        merged.pop(key, None)
    return merged


async def get_user(session: AsyncSession, user_id: UUID) -> User:
    user = await User.objects.by_id(user_id).first(session)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    normalized = email.strip().lower()
    return await User.objects.filter(func.lower(col(User.email)) == normalized).first(session)


async def get_users_by_ids(session: AsyncSession, user_ids: Iterable[UUID]) -> dict[UUID, User]:
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return {}
    users = await User.objects.by_ids(ids).all(session)
    return {user.id: user for user in users}
