"""Pagination helper wrapping fastapi-pagination for SQLModel statements."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi_pagination.ext.sqlalchemy import apaginate

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from fastapi_pagination.bases import AbstractParams
    from sqlalchemy.sql import Select
    from sqlmodel.ext.asyncio.session import AsyncSession


async def paginate(
    session: AsyncSession,
    statement: Select[Any],
    *,
    params: AbstractParams | None = None,
    transformer: Callable[[Sequence[Any]], Sequence[Any] | Awaitable[Sequence[Any]]]
    | None = None,
) -> Any:
    """Run ``statement`` as a limit/offset page.

    ``transformer`` may be a coroutine function when rows need extra queries
    to hydrate.
    """
    return await apaginate(session, statement, params=params, transformer=transformer)
