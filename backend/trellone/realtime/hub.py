"""Room-based fan-out for realtime connections.

Delivery is fire-and-forget: a socket that fails to accept a frame is dropped
from the hub and never retried.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from starlette.websockets import WebSocketDisconnect

from trellone.core.logging import get_logger
from trellone.realtime.presence import PresenceRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

logger = get_logger(__name__)


class MessageSink(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    JOINED = "joined"
    DISCONNECTED = "disconnected"


@dataclass(eq=False)
class Connection:
    id: str
    socket: MessageSink
    user_id: UUID
    access_token: str = ""
    state: ConnectionState = ConnectionState.CONNECTING
    rooms: set[str] = field(default_factory=set)


class RoomHub:
    """Connections, their rooms, and the presence registry they report to."""

    def __init__(self, presence: PresenceRegistry) -> None:
        self.presence = presence
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    async def register(self, connection: Connection) -> None:
        async with self._lock:
            self._connections[connection.id] = connection
            connection.state = ConnectionState.AUTHENTICATED
        await self.presence.bind(connection.user_id, connection.id)
        logger.info(
            "realtime.connected connection_id=%s user_id=%s",
            connection.id,
            connection.user_id,
        )

    async def unregister(self, connection: Connection) -> None:
        async with self._lock:
            if self._connections.pop(connection.id, None) is None:
                return
            for room in connection.rooms:
                self._discard_member(room, connection.id)
            connection.rooms.clear()
            connection.state = ConnectionState.DISCONNECTED
        await self.presence.release(connection.user_id, connection.id)
        logger.info(
            "realtime.disconnected connection_id=%s user_id=%s",
            connection.id,
            connection.user_id,
        )

    def _discard_member(self, room: str, connection_id: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    async def join(self, connection: Connection, room: str) -> None:
        async with self._lock:
            if connection.id not in self._connections:
                return
            self._rooms.setdefault(room, set()).add(connection.id)
            connection.rooms.add(room)
            connection.state = ConnectionState.JOINED

    async def leave(self, connection: Connection, room: str) -> None:
        async with self._lock:
            self._discard_member(room, connection.id)
            connection.rooms.discard(room)
            if not connection.rooms and connection.state == ConnectionState.JOINED:
                connection.state = ConnectionState.AUTHENTICATED

    async def room_members(self, room: str) -> set[str]:
        async with self._lock:
            return set(self._rooms.get(room, ()))

    async def _deliver(self, targets: Iterable[Connection], message: dict[str, Any]) -> int:
        delivered = 0
        failed: list[Connection] = []
        for target in targets:
            try:
                await target.socket.send_json(message)
            except (RuntimeError, OSError, WebSocketDisconnect):
                failed.append(target)
                continue
            delivered += 1
        for target in failed:
            logger.info("realtime.send.failed connection_id=%s", target.id)
            await self.unregister(target)
        return delivered

    async def broadcast(
        self,
        rooms: str | Iterable[str],
        message: dict[str, Any],
        *,
        skip: str | None = None,
    ) -> int:
        """Send ``message`` once to every member of ``rooms`` except ``skip``."""
        room_names = [rooms] if isinstance(rooms, str) else list(rooms)
        async with self._lock:
            target_ids: dict[str, None] = {}
            for room in room_names:
                for connection_id in self._rooms.get(room, ()):
                    if connection_id != skip:
                        target_ids[connection_id] = None
            targets = [self._connections[cid] for cid in target_ids if cid in self._connections]
        return await self._deliver(targets, message)

    async def broadcast_all(self, message: dict[str, Any], *, skip: str | None = None) -> int:
        async with self._lock:
            targets = [c for cid, c in self._connections.items() if cid != skip]
        return await self._deliver(targets, message)

    async def send_to(self, connection_id: str, message: dict[str, Any]) -> bool:
        async with self._lock:
            target = self._connections.get(connection_id)
        if target is None:
            return False
        return await self._deliver([target], message) == 1


_ROOM_HUB: RoomHub | None = None


def get_room_hub() -> RoomHub:
    """Process-wide hub used by the realtime endpoint."""
    global _ROOM_HUB  # noqa: PLW0603
    if _ROOM_HUB is None:
        _ROOM_HUB = RoomHub(PresenceRegistry())
    return _ROOM_HUB
