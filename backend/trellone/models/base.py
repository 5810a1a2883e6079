"""Base model with a small chainable query manager.

Usage mirrors a Django-style manager on top of SQLModel statements::

    board = await Board.objects.by_id(board_id).first(session)
    cards = await Card.objects.filter_by(column_id=column.id).all(session)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound="QueryModel")


class QuerySet(Generic[ModelT]):
    """Immutable wrapper around a ``select(Model)`` statement."""

    def __init__(self, model: type[ModelT], statement: SelectOfScalar[ModelT]) -> None:
        self.model = model
        self.statement = statement

    def _clone(self, statement: SelectOfScalar[ModelT]) -> QuerySet[ModelT]:
        return QuerySet(self.model, statement)

    def filter(self, *criteria: ColumnElement[bool] | bool) -> QuerySet[ModelT]:
        return self._clone(self.statement.where(*criteria))

    def filter_by(self, **kwargs: object) -> QuerySet[ModelT]:
        return self._clone(self.statement.filter_by(**kwargs))

    def order_by(self, *clauses: Any) -> QuerySet[ModelT]:
        return self._clone(self.statement.order_by(*clauses))

    def limit(self, count: int) -> QuerySet[ModelT]:
        return self._clone(self.statement.limit(count))

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement)).first()


class ModelManager(Generic[ModelT]):
    """Entry point for building querysets against one table model."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model, select(self.model))

    def by_id(self, obj_id: object) -> QuerySet[ModelT]:
        return self.all().filter(col(getattr(self.model, "id")) == obj_id)

    def by_ids(self, obj_ids: Iterable[object]) -> QuerySet[ModelT]:
        return self.by_field_in("id", obj_ids)

    def by_field_in(self, field: str, values: Iterable[object]) -> QuerySet[ModelT]:
        return self.all().filter(col(getattr(self.model, field)).in_(list(values)))

    def filter(self, *criteria: ColumnElement[bool] | bool) -> QuerySet[ModelT]:
        return self.all().filter(*criteria)

    def filter_by(self, **kwargs: object) -> QuerySet[ModelT]:
        return self.all().filter_by(**kwargs)


class _ManagerDescriptor:
    def __get__(self, instance: object, owner: type[ModelT]) -> ModelManager[ModelT]:
        return ModelManager(owner)


class QueryModel(SQLModel):
    """SQLModel base exposing ``Model.objects`` for chainable queries."""

    objects: ClassVar[_ManagerDescriptor] = _ManagerDescriptor()
