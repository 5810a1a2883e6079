"""Online-user registry mapping a user id to their live connection id."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class PresenceRegistry:
    """Tracks one connection per user; the newest connection wins."""

    def __init__(self) -> None:
        self._connections: dict[UUID, str] = {}
        self._lock = asyncio.Lock()

    async def bind(self, user_id: UUID, connection_id: str) -> None:
        async with self._lock:
            self._connections[user_id] = connection_id

    async def release(self, user_id: UUID, connection_id: str) -> bool:
        """Drop the entry only if it still points at ``connection_id``."""
        async with self._lock:
            if self._connections.get(user_id) != connection_id:
                return False
            del self._connections[user_id]
            return True

    async def lookup(self, user_id: UUID) -> str | None:
        async with self._lock:
            return self._connections.get(user_id)

    async def snapshot(self) -> dict[UUID, str]:
        async with self._lock:
            return dict(self._connections)
