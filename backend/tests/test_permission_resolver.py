# ruff: noqa: INP001
"""Role registry and effective-role resolution."""

from __future__ import annotations

from uuid import uuid4

import pytest

from trellone.models.board_members import BoardMember
from trellone.models.boards import Board
from trellone.models.workspace_members import WorkspaceMember
from trellone.models.workspaces import Workspace
from trellone.services.permissions import (
    BOARD_ROLE_PERMISSIONS,
    WORKSPACE_ROLE_PERMISSIONS,
    BoardPermission,
    BoardRole,
    RoleLevel,
    WorkspacePermission,
    WorkspaceRole,
    registry_rows,
)
from trellone.services.rbac import (
    BoardAccess,
    WorkspaceAccess,
    has_board_permission,
    has_workspace_permission,
    resolve_effective_board_role,
)


def _workspace(*rows: tuple[object, str | None]) -> WorkspaceAccess:
    workspace = Workspace(title="Product")
    return WorkspaceAccess(
        workspace=workspace,
        members=tuple(
            WorkspaceMember(workspace_id=workspace.id, user_id=user_id, role=role)
            for user_id, role in rows
        ),
    )


def _board(workspace: WorkspaceAccess | None, *rows: tuple[object, str]) -> BoardAccess:
    board = Board(
        title="Roadmap",
        workspace_id=workspace.workspace.id if workspace is not None else None,
    )
    return BoardAccess(
        board=board,
        members=tuple(
            BoardMember(board_id=board.id, user_id=user_id, role=role) for user_id, role in rows
        ),
    )


def test_wire_values_are_stable() -> None:
    assert BoardPermission.DELETE_BOARD.value == "BOARD__DELETE"
    assert WorkspacePermission.JOIN_BOARD.value == "WORKSPACE__JOIN_BOARD"
    assert BoardRole.OBSERVER.value == "Observer"
    assert WorkspaceRole.NORMAL.value == "Normal"


def test_board_member_lacks_only_destructive_and_member_management() -> None:
    denied = set(BoardPermission) - BOARD_ROLE_PERMISSIONS[BoardRole.MEMBER]

    assert denied == {
        BoardPermission.MANAGE_MEMBERS,
        BoardPermission.DELETE_BOARD,
        BoardPermission.DELETE_COLUMN,
        BoardPermission.DELETE_CARD,
    }
    assert BOARD_ROLE_PERMISSIONS[BoardRole.OBSERVER] == {BoardPermission.VIEW_BOARD}
    assert BOARD_ROLE_PERMISSIONS[BoardRole.ADMIN] == set(BoardPermission)


def test_workspace_normal_permissions() -> None:
    assert WORKSPACE_ROLE_PERMISSIONS[WorkspaceRole.NORMAL] == {
        WorkspacePermission.VIEW_WORKSPACE,
        WorkspacePermission.CREATE_BOARD,
        WorkspacePermission.JOIN_BOARD,
    }


def test_registry_rows_cover_every_role() -> None:
    rows = {(name, level): permissions for name, level, permissions in registry_rows()}

    assert set(rows) == {
        ("Admin", RoleLevel.WORKSPACE),
        ("Normal", RoleLevel.WORKSPACE),
        ("Admin", RoleLevel.BOARD),
        ("Member", RoleLevel.BOARD),
        ("Observer", RoleLevel.BOARD),
    }
    assert rows[("Observer", RoleLevel.BOARD)] == ["BOARD__VIEW"]


def test_normal_workspace_member_inherits_board_member_role() -> None:
    user_id = uuid4()
    workspace = _workspace((user_id, WorkspaceRole.NORMAL.value))
    board = _board(workspace)

    assert resolve_effective_board_role(board, workspace, user_id) == BoardRole.MEMBER
    assert not has_board_permission(user_id, board, BoardPermission.DELETE_BOARD, workspace)
    assert has_board_permission(user_id, board, BoardPermission.CREATE_CARD, workspace)


def test_workspace_admin_inherits_board_admin_role() -> None:
    user_id = uuid4()
    workspace = _workspace((user_id, WorkspaceRole.ADMIN.value))
    board = _board(workspace)

    assert resolve_effective_board_role(board, workspace, user_id) == BoardRole.ADMIN


@pytest.mark.parametrize("workspace_role", [WorkspaceRole.ADMIN, WorkspaceRole.NORMAL, None])
@pytest.mark.parametrize("board_role", list(BoardRole))
def test_explicit_board_role_always_wins(
    workspace_role: WorkspaceRole | None,
    board_role: BoardRole,
) -> None:
    user_id = uuid4()
    workspace = _workspace((user_id, workspace_role.value if workspace_role else None))
    board = _board(workspace, (user_id, board_role.value))

    assert resolve_effective_board_role(board, workspace, user_id) == board_role
    assert resolve_effective_board_role(board, None, user_id) == board_role


def test_guest_without_board_role_gets_nothing() -> None:
    user_id = uuid4()
    workspace = _workspace((user_id, None))
    board = _board(workspace)

    assert resolve_effective_board_role(board, workspace, user_id) is None
    assert not has_board_permission(user_id, board, BoardPermission.VIEW_BOARD, workspace)


def test_stranger_gets_nothing() -> None:
    workspace = _workspace((uuid4(), WorkspaceRole.ADMIN.value))
    board = _board(workspace, (uuid4(), BoardRole.ADMIN.value))

    assert resolve_effective_board_role(board, workspace, uuid4()) is None


@pytest.mark.parametrize("board_role", [*list(BoardRole), None])
@pytest.mark.parametrize("permission", list(BoardPermission))
def test_has_board_permission_matches_effective_role(
    board_role: BoardRole | None,
    permission: BoardPermission,
) -> None:
    user_id = uuid4()
    rows = [(user_id, board_role.value)] if board_role else []
    board = _board(None, *rows)

    expected = board_role is not None and permission in BOARD_ROLE_PERMISSIONS[board_role]
    assert has_board_permission(user_id, board, permission) is expected


def test_workspace_permission_requires_direct_membership() -> None:
    admin_id = uuid4()
    normal_id = uuid4()
    guest_id = uuid4()
    workspace = _workspace(
        (admin_id, WorkspaceRole.ADMIN.value),
        (normal_id, WorkspaceRole.NORMAL.value),
        (guest_id, None),
    )

    assert has_workspace_permission(admin_id, workspace, WorkspacePermission.DELETE_WORKSPACE)
    assert has_workspace_permission(normal_id, workspace, WorkspacePermission.CREATE_BOARD)
    assert not has_workspace_permission(normal_id, workspace, WorkspacePermission.MANAGE_GUESTS)
    assert not has_workspace_permission(guest_id, workspace, WorkspacePermission.VIEW_WORKSPACE)
