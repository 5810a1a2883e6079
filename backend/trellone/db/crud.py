"""Small write helpers shared by services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete
from sqlmodel import SQLModel, select

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def save(session: AsyncSession, obj: ModelT, *, commit: bool = True) -> ModelT:
    """Add ``obj`` to the session and optionally commit + refresh it."""
    session.add(obj)
    if commit:
        await session.commit()
        await session.refresh(obj)
    return obj


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: Mapping[str, Any] | None = None,
    commit: bool = True,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """Return the row matching ``lookup`` or create it with ``defaults``."""
    existing = (await session.exec(select(model).filter_by(**lookup))).first()
    if existing is not None:
        return existing, False
    obj = model(**{**dict(defaults or {}), **lookup})
    await save(session, obj, commit=commit)
    return obj, True


async def patch(
    session: AsyncSession,
    obj: ModelT,
    updates: Mapping[str, Any],
    *,
    commit: bool = True,
) -> ModelT:
    """Apply attribute updates to ``obj`` and persist it."""
    for key, value in updates.items():
        setattr(obj, key, value)
    return await save(session, obj, commit=commit)


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: ColumnElement[bool] | bool,
    commit: bool = True,
) -> int:
    """Bulk-delete rows of ``model`` matching ``criteria``; returns the row count."""
    statement = delete(model).where(*criteria)
    result = await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()
    return int(getattr(result, "rowcount", 0) or 0)
