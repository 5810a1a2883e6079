"""Realtime event names, room naming, and frame (de)serialization.

Frames on the wire are JSON objects ``{"event": NAME, "args": [...]}``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

BOARD_ROOM_PREFIX = "board-"
WORKSPACE_ROOM_PREFIX = "workspace-"
WORKSPACES_INDEX_ROOM = "workspaces-index"


class ClientEvent(str, Enum):
    JOIN_BOARD = "CLIENT_JOIN_BOARD"
    LEAVE_BOARD = "CLIENT_LEAVE_BOARD"
    USER_UPDATED_BOARD = "CLIENT_USER_UPDATED_BOARD"
    USER_DELETED_BOARD = "CLIENT_USER_DELETED_BOARD"
    USER_ACCEPTED_BOARD_INVITATION = "CLIENT_USER_ACCEPTED_BOARD_INVITATION"
    JOIN_WORKSPACE = "CLIENT_JOIN_WORKSPACE"
    LEAVE_WORKSPACE = "CLIENT_LEAVE_WORKSPACE"
    JOIN_WORKSPACES_INDEX = "CLIENT_JOIN_WORKSPACES_INDEX"
    LEAVE_WORKSPACES_INDEX = "CLIENT_LEAVE_WORKSPACES_INDEX"
    USER_UPDATED_WORKSPACE = "CLIENT_USER_UPDATED_WORKSPACE"
    USER_CREATED_WORKSPACE_BOARD = "CLIENT_USER_CREATED_WORKSPACE_BOARD"
    USER_UPDATED_CARD = "CLIENT_USER_UPDATED_CARD"
    USER_INVITED_TO_BOARD = "CLIENT_USER_INVITED_TO_BOARD"


class ServerEvent(str, Enum):
    BOARD_UPDATED = "SERVER_BOARD_UPDATED"
    USER_DELETED_BOARD = "SERVER_USER_DELETED_BOARD"
    USER_ACCEPTED_BOARD_INVITATION = "SERVER_USER_ACCEPTED_BOARD_INVITATION"
    WORKSPACE_UPDATED = "SERVER_WORKSPACE_UPDATED"
    WORKSPACE_BOARD_CREATED = "SERVER_WORKSPACE_BOARD_CREATED"
    CARD_UPDATED = "SERVER_CARD_UPDATED"
    USER_INVITED_TO_BOARD = "SERVER_USER_INVITED_TO_BOARD"
    ERROR = "SERVER_ERROR"


class FrameError(ValueError):
    """Inbound frame is malformed or carries arguments the event cannot use."""


@dataclass(frozen=True)
class ClientFrame:
    event: ClientEvent
    args: list[Any] = field(default_factory=list)


def board_room(board_id: object) -> str:
    return f"{BOARD_ROOM_PREFIX}{board_id}"


def workspace_room(workspace_id: object) -> str:
    return f"{WORKSPACE_ROOM_PREFIX}{workspace_id}"


def parse_frame(raw: str) -> ClientFrame:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise FrameError("Frame is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise FrameError("Frame must be a JSON object")
    try:
        event = ClientEvent(payload.get("event"))
    except ValueError as exc:
        raise FrameError(f"Unknown event: {payload.get('event')!r}") from exc
    args = payload.get("args", [])
    if not isinstance(args, list):
        raise FrameError("Frame args must be a list")
    return ClientFrame(event=event, args=args)


def server_frame(event: ServerEvent, *args: Any) -> dict[str, Any]:
    return {"event": event.value, "args": list(args)}


def error_frame(message: str, *, event: str | None = None) -> dict[str, Any]:
    return server_frame(ServerEvent.ERROR, {"message": message, "event": event})
