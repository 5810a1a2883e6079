"""Client event handlers for the realtime channel.

Room membership is not re-checked here; clients join only the rooms of
boards and workspaces they already loaded through the authorized REST API.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any
from uuid import UUID

from trellone.core.logging import get_logger
from trellone.realtime.events import (
    WORKSPACES_INDEX_ROOM,
    ClientEvent,
    ClientFrame,
    FrameError,
    ServerEvent,
    board_room,
    error_frame,
    parse_frame,
    server_frame,
    workspace_room,
)
from trellone.services.ordering import is_valid_id

if TYPE_CHECKING:
    from trellone.realtime.hub import Connection, RoomHub

logger = get_logger(__name__)

Handler = Callable[["RoomHub", "Connection", list[Any]], Awaitable[None]]


def _id_arg(args: list[Any], index: int, name: str) -> str:
    if len(args) <= index or not is_valid_id(args[index]):
        raise FrameError(f"Invalid {name}")
    return str(args[index])


def _object_arg(args: list[Any], index: int, name: str) -> dict[str, Any]:
    if len(args) <= index or not isinstance(args[index], dict):
        raise FrameError(f"{name} must be an object")
    return args[index]


def _id_field(payload: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            if not is_valid_id(value):
                break
            return str(value)
    raise FrameError(f"Invalid {keys[0]}")


async def _join_board(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    await hub.join(connection, board_room(_id_arg(args, 0, "board id")))


async def _leave_board(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    await hub.leave(connection, board_room(_id_arg(args, 0, "board id")))


async def _join_workspace(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    await hub.join(connection, workspace_room(_id_arg(args, 0, "workspace id")))


async def _leave_workspace(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    await hub.leave(connection, workspace_room(_id_arg(args, 0, "workspace id")))


async def _join_workspaces_index(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    await hub.join(connection, WORKSPACES_INDEX_ROOM)


async def _leave_workspaces_index(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    await hub.leave(connection, WORKSPACES_INDEX_ROOM)


async def _board_updated(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    board = _object_arg(args, 0, "board")
    board_id = _id_field(board, "_id", "id")
    await hub.broadcast(
        board_room(board_id),
        server_frame(ServerEvent.BOARD_UPDATED, board),
        skip=connection.id,
    )


async def _board_deleted(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    board_id = _id_arg(args, 0, "board id")
    await hub.broadcast(
        board_room(board_id),
        server_frame(ServerEvent.USER_DELETED_BOARD, board_id),
        skip=connection.id,
    )


async def _invitation_accepted(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    payload = _object_arg(args, 0, "payload")
    board_id = _id_field(payload, "board_id", "boardId")
    await hub.broadcast(
        board_room(board_id),
        server_frame(ServerEvent.USER_ACCEPTED_BOARD_INVITATION, payload.get("invitee")),
        skip=connection.id,
    )


async def _workspace_updated(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    workspace_id = _id_arg(args, 0, "workspace id")
    board_id = _id_arg(args, 1, "board id") if len(args) > 1 and args[1] is not None else None
    await hub.broadcast(
        [workspace_room(workspace_id), WORKSPACES_INDEX_ROOM],
        server_frame(ServerEvent.WORKSPACE_UPDATED, workspace_id, board_id),
        skip=connection.id,
    )


async def _workspace_board_created(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    workspace_id = _id_arg(args, 0, "workspace id")
    await hub.broadcast(
        workspace_room(workspace_id),
        server_frame(ServerEvent.WORKSPACE_BOARD_CREATED, workspace_id),
        skip=connection.id,
    )


async def _card_updated(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    card = _object_arg(args, 0, "card")
    board_id = _id_field(card, "board_id")
    await hub.broadcast(
        board_room(board_id),
        server_frame(ServerEvent.CARD_UPDATED, card),
        skip=connection.id,
    )


async def _user_invited(hub: RoomHub, connection: Connection, args: list[Any]) -> None:
    invitation = _object_arg(args, 0, "invitation")
    invitee_id = UUID(_id_field(invitation, "invitee_id"))
    message = server_frame(ServerEvent.USER_INVITED_TO_BOARD, invitation)
    target = await hub.presence.lookup(invitee_id)
    if target is not None and await hub.send_to(target, message):
        return
    await hub.broadcast_all(message, skip=connection.id)


HANDLERS: dict[ClientEvent, Handler] = {
    ClientEvent.JOIN_BOARD: _join_board,
    ClientEvent.LEAVE_BOARD: _leave_board,
    ClientEvent.USER_UPDATED_BOARD: _board_updated,
    ClientEvent.USER_DELETED_BOARD: _board_deleted,
    ClientEvent.USER_ACCEPTED_BOARD_INVITATION: _invitation_accepted,
    ClientEvent.JOIN_WORKSPACE: _join_workspace,
    ClientEvent.LEAVE_WORKSPACE: _leave_workspace,
    ClientEvent.JOIN_WORKSPACES_INDEX: _join_workspaces_index,
    ClientEvent.LEAVE_WORKSPACES_INDEX: _leave_workspaces_index,
    ClientEvent.USER_UPDATED_WORKSPACE: _workspace_updated,
    ClientEvent.USER_CREATED_WORKSPACE_BOARD: _workspace_board_created,
    ClientEvent.USER_UPDATED_CARD: _card_updated,
    ClientEvent.USER_INVITED_TO_BOARD: _user_invited,
}


async def dispatch(hub: RoomHub, connection: Connection, frame: ClientFrame) -> None:
    await HANDLERS[frame.event](hub, connection, frame.args)


async def handle_raw_frame(hub: RoomHub, connection: Connection, raw: str) -> None:
    """Parse and dispatch one inbound frame; errors go back to the sender only."""
    event: str | None = None
    try:
        frame = parse_frame(raw)
        event = frame.event.value
        await dispatch(hub, connection, frame)
    except FrameError as exc:
        logger.info(
            "realtime.frame.rejected connection_id=%s event=%s reason=%s",
            connection.id,
            event,
            exc,
        )
        await hub.send_to(connection.id, error_frame(str(exc), event=event))
