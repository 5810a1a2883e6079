"""Persist and query the role registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from trellone.core.logging import get_logger
from trellone.core.time import utcnow
from trellone.models.roles import Role
from trellone.services.permissions import registry_rows

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from trellone.services.permissions import RoleLevel

logger = get_logger(__name__)


async def seed_roles(session: AsyncSession) -> tuple[int, int]:
    """Upsert every static role row. Returns ``(created, updated)``."""
    created = 0
    updated = 0
    for name, level, permissions in registry_rows():
        existing = await Role.objects.filter_by(name=name, level=level.value).first(session)
        if existing is None:
            session.add(Role(name=name, level=level.value, permissions=permissions))
            created += 1
            continue
        if sorted(existing.permissions) != permissions:
            existing.permissions = permissions
            existing.updated_at = utcnow()
            session.add(existing)
            updated += 1
    await session.commit()
    logger.info("roles.seeded created=%s updated=%s", created, updated)
    return created, updated


async def list_roles(session: AsyncSession, *, level: RoleLevel | None = None) -> list[Role]:
    queryset = Role.objects.all()
    if level is not None:
        queryset = queryset.filter(col(Role.level) == level.value)
    return await queryset.order_by(col(Role.level), col(Role.name)).all(session)
