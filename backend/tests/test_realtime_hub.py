# ruff: noqa: INP001
"""Room fan-out, presence, and frame handling without a real socket."""

from __future__ import annotations

import json
from typing import Any
from uuid import uuid4

import pytest

from trellone.realtime.events import WORKSPACES_INDEX_ROOM, board_room, workspace_room
from trellone.realtime.handlers import handle_raw_frame
from trellone.realtime.hub import Connection, ConnectionState, RoomHub
from trellone.realtime.presence import PresenceRegistry


class _FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.broken = broken

    async def send_json(self, data: Any, mode: str = "text") -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(data)


def _connection(*, user_id: Any = None, broken: bool = False) -> Connection:
    return Connection(
        id=uuid4().hex,
        socket=_FakeSocket(broken=broken),
        user_id=user_id or uuid4(),
    )


def _frame(event: str, *args: Any) -> str:
    return json.dumps({"event": event, "args": list(args)})


def _events(connection: Connection) -> list[str]:
    return [message["event"] for message in connection.socket.sent]


@pytest.mark.asyncio
async def test_board_update_reaches_room_members_except_sender() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, peer, outsider = _connection(), _connection(), _connection()
    board_id = str(uuid4())
    for connection in (sender, peer, outsider):
        await hub.register(connection)
    await handle_raw_frame(hub, sender, _frame("CLIENT_JOIN_BOARD", board_id))
    await handle_raw_frame(hub, peer, _frame("CLIENT_JOIN_BOARD", board_id))

    board = {"_id": board_id, "title": "Renamed"}
    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_UPDATED_BOARD", board))

    assert peer.socket.sent == [{"event": "SERVER_BOARD_UPDATED", "args": [board]}]
    assert sender.socket.sent == []
    assert outsider.socket.sent == []


@pytest.mark.asyncio
async def test_leaving_a_room_stops_delivery() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, peer = _connection(), _connection()
    board_id = str(uuid4())
    for connection in (sender, peer):
        await hub.register(connection)
        await handle_raw_frame(hub, connection, _frame("CLIENT_JOIN_BOARD", board_id))
    assert peer.state == ConnectionState.JOINED

    await handle_raw_frame(hub, peer, _frame("CLIENT_LEAVE_BOARD", board_id))
    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_DELETED_BOARD", board_id))

    assert peer.socket.sent == []
    assert peer.state == ConnectionState.AUTHENTICATED
    assert await hub.room_members(board_room(board_id)) == {sender.id}


@pytest.mark.asyncio
async def test_workspace_update_reaches_workspace_and_index_rooms_once() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, in_workspace, on_index, in_both = (_connection() for _ in range(4))
    workspace_id = str(uuid4())
    for connection in (sender, in_workspace, on_index, in_both):
        await hub.register(connection)
    await hub.join(in_workspace, workspace_room(workspace_id))
    await hub.join(on_index, WORKSPACES_INDEX_ROOM)
    await hub.join(in_both, workspace_room(workspace_id))
    await hub.join(in_both, WORKSPACES_INDEX_ROOM)

    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_UPDATED_WORKSPACE", workspace_id))

    expected = [{"event": "SERVER_WORKSPACE_UPDATED", "args": [workspace_id, None]}]
    assert in_workspace.socket.sent == expected
    assert on_index.socket.sent == expected
    assert in_both.socket.sent == expected
    assert sender.socket.sent == []


@pytest.mark.asyncio
async def test_card_update_is_routed_by_its_board() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, peer = _connection(), _connection()
    board_id = str(uuid4())
    for connection in (sender, peer):
        await hub.register(connection)
        await hub.join(connection, board_room(board_id))

    card = {"id": str(uuid4()), "board_id": board_id, "title": "Write docs"}
    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_UPDATED_CARD", card))

    assert peer.socket.sent == [{"event": "SERVER_CARD_UPDATED", "args": [card]}]


@pytest.mark.asyncio
async def test_malformed_frames_error_back_to_sender_only() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, peer = _connection(), _connection()
    board_id = str(uuid4())
    for connection in (sender, peer):
        await hub.register(connection)
        await hub.join(connection, board_room(board_id))

    await handle_raw_frame(hub, sender, "not json")
    await handle_raw_frame(hub, sender, _frame("CLIENT_UNKNOWN"))
    await handle_raw_frame(hub, sender, _frame("CLIENT_JOIN_BOARD", "not-an-id"))
    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_UPDATED_BOARD", {"title": "x"}))

    assert _events(sender) == ["SERVER_ERROR"] * 4
    assert sender.socket.sent[2]["args"][0] == {
        "message": "Invalid board id",
        "event": "CLIENT_JOIN_BOARD",
    }
    assert peer.socket.sent == []


@pytest.mark.asyncio
async def test_presence_keeps_the_newest_connection() -> None:
    presence = PresenceRegistry()
    hub = RoomHub(presence)
    user_id = uuid4()
    first = _connection(user_id=user_id)
    second = _connection(user_id=user_id)

    await hub.register(first)
    await hub.register(second)
    assert await presence.lookup(user_id) == second.id

    await hub.unregister(first)
    assert await presence.lookup(user_id) == second.id

    await hub.unregister(second)
    assert await presence.lookup(user_id) is None


@pytest.mark.asyncio
async def test_invitation_goes_to_the_present_invitee_only() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, invitee, bystander = _connection(), _connection(), _connection()
    for connection in (sender, invitee, bystander):
        await hub.register(connection)

    invitation = {"id": str(uuid4()), "invitee_id": str(invitee.user_id)}
    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_INVITED_TO_BOARD", invitation))

    assert invitee.socket.sent == [
        {"event": "SERVER_USER_INVITED_TO_BOARD", "args": [invitation]},
    ]
    assert bystander.socket.sent == []
    assert sender.socket.sent == []


@pytest.mark.asyncio
async def test_invitation_for_offline_invitee_goes_to_everyone_else() -> None:
    hub = RoomHub(PresenceRegistry())
    sender, first, second = _connection(), _connection(), _connection()
    for connection in (sender, first, second):
        await hub.register(connection)

    invitation = {"id": str(uuid4()), "invitee_id": str(uuid4())}
    await handle_raw_frame(hub, sender, _frame("CLIENT_USER_INVITED_TO_BOARD", invitation))

    assert _events(first) == ["SERVER_USER_INVITED_TO_BOARD"]
    assert _events(second) == ["SERVER_USER_INVITED_TO_BOARD"]
    assert sender.socket.sent == []


@pytest.mark.asyncio
async def test_failed_delivery_drops_the_connection() -> None:
    presence = PresenceRegistry()
    hub = RoomHub(presence)
    sender, broken = _connection(), _connection(broken=True)
    board_id = str(uuid4())
    for connection in (sender, broken):
        await hub.register(connection)
        await hub.join(connection, board_room(board_id))

    delivered = await hub.broadcast(board_room(board_id), {"event": "X", "args": []}, skip=sender.id)

    assert delivered == 0
    assert broken.state == ConnectionState.DISCONNECTED
    assert await hub.room_members(board_room(board_id)) == {sender.id}
    assert await presence.lookup(broken.user_id) is None
