"""WebSocket endpoint for board/workspace room sync."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from trellone.core.auth import authenticate_token, extract_access_token
from trellone.core.errors import UnauthorizedError
from trellone.core.logging import get_logger
from trellone.core.security import decode_access_token
from trellone.db.session import get_session
from trellone.realtime.events import error_frame
from trellone.realtime.handlers import handle_raw_frame
from trellone.realtime.hub import Connection, RoomHub, get_room_hub

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(tags=["realtime"])
SESSION_DEP = Depends(get_session)
HUB_DEP = Depends(get_room_hub)
logger = get_logger(__name__)

WS_CLOSE_UNAUTHORIZED = 4401


def _handshake_token(websocket: WebSocket) -> str | None:
    token = extract_access_token(
        cookies=websocket.cookies,
        authorization=websocket.headers.get("authorization"),
    )
    if token is not None:
        return token
    return (websocket.query_params.get("token") or "").strip() or None


def _token_still_valid(token: str) -> bool:
    try:
        decode_access_token(token)
    except UnauthorizedError:
        return False
    return True


@router.websocket("/realtime")
async def realtime_ws(
    websocket: WebSocket,
    session: AsyncSession = SESSION_DEP,
    hub: RoomHub = HUB_DEP,
) -> None:
    token = _handshake_token(websocket)
    try:
        auth = await authenticate_token(session, token)
    except UnauthorizedError as exc:
        logger.info("realtime.handshake.rejected reason=%s", exc.message)
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return
    await session.close()

    await websocket.accept()
    connection = Connection(
        id=uuid4().hex,
        socket=websocket,
        user_id=auth.user.id,
        access_token=token or "",
    )
    await hub.register(connection)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if not _token_still_valid(connection.access_token):
                logger.info(
                    "realtime.token.expired connection_id=%s user_id=%s",
                    connection.id,
                    connection.user_id,
                )
                await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
                break
            if raw is None:
                await hub.send_to(connection.id, error_frame("Frames must be JSON text"))
                continue
            await handle_raw_frame(hub, connection, raw)
    except WebSocketDisconnect:
        logger.debug("realtime.client.disconnected connection_id=%s", connection.id)
    finally:
        await hub.unregister(connection)
