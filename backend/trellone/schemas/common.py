"""Common response payloads and shared payload checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import SQLModel

if TYPE_CHECKING:
    from collections.abc import Iterable


class OkResponse(SQLModel):
    """Generic acknowledgement body."""

    ok: bool = True


def require_fields_set(model: SQLModel) -> None:
    if not model.model_fields_set:
        raise ValueError("At least one field must be provided")


def reject_explicit_nulls(model: SQLModel, fields: Iterable[str]) -> None:
    """Raise when a non-nullable field was sent as an explicit ``null``."""
    nulls = sorted(
        name for name in fields if name in model.model_fields_set and getattr(model, name) is None
    )
    if nulls:
        raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
