"""Static role and permission registry for workspace and board scopes.

Wire values of every enum member are part of the public API and are stored in
the ``roles`` table; do not rename them.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class RoleLevel(str, Enum):
    WORKSPACE = "Workspace"
    BOARD = "Board"


class WorkspaceRole(str, Enum):
    ADMIN = "Admin"
    NORMAL = "Normal"


class BoardRole(str, Enum):
    ADMIN = "Admin"
    MEMBER = "Member"
    OBSERVER = "Observer"


class WorkspacePermission(str, Enum):
    VIEW_WORKSPACE = "WORKSPACE__VIEW"
    CREATE_BOARD = "WORKSPACE__CREATE_BOARD"
    MANAGE_WORKSPACE = "WORKSPACE__MANAGE"
    MANAGE_MEMBERS = "WORKSPACE__MANAGE_MEMBERS"
    MANAGE_GUESTS = "WORKSPACE__MANAGE_GUESTS"
    DELETE_WORKSPACE = "WORKSPACE__DELETE"
    JOIN_BOARD = "WORKSPACE__JOIN_BOARD"


class BoardPermission(str, Enum):
    VIEW_BOARD = "BOARD__VIEW"
    MANAGE_BOARD = "BOARD__MANAGE"
    MANAGE_MEMBERS = "BOARD__MANAGE_MEMBERS"
    DELETE_BOARD = "BOARD__DELETE"
    CREATE_COLUMN = "BOARD__CREATE_COLUMN"
    EDIT_COLUMN = "BOARD__EDIT_COLUMN"
    DELETE_COLUMN = "BOARD__DELETE_COLUMN"
    CREATE_CARD = "BOARD__CREATE_CARD"
    EDIT_CARD = "BOARD__EDIT_CARD"
    DELETE_CARD = "BOARD__DELETE_CARD"
    COMMENT = "BOARD__COMMENT"
    ATTACH = "BOARD__ATTACH"


_BOARD_MEMBER_DENIED = frozenset(
    {
        BoardPermission.MANAGE_MEMBERS,
        BoardPermission.DELETE_BOARD,
        BoardPermission.DELETE_COLUMN,
        BoardPermission.DELETE_CARD,
    },
)

WORKSPACE_ROLE_PERMISSIONS: Mapping[WorkspaceRole, frozenset[WorkspacePermission]] = (
    MappingProxyType(
        {
            WorkspaceRole.ADMIN: frozenset(WorkspacePermission),
            WorkspaceRole.NORMAL: frozenset(
                {
                    WorkspacePermission.VIEW_WORKSPACE,
                    WorkspacePermission.CREATE_BOARD,
                    WorkspacePermission.JOIN_BOARD,
                },
            ),
        },
    )
)

BOARD_ROLE_PERMISSIONS: Mapping[BoardRole, frozenset[BoardPermission]] = MappingProxyType(
    {
        BoardRole.ADMIN: frozenset(BoardPermission),
        BoardRole.MEMBER: frozenset(BoardPermission) - _BOARD_MEMBER_DENIED,
        BoardRole.OBSERVER: frozenset({BoardPermission.VIEW_BOARD}),
    },
)

# Workspace standing → board role granted when no explicit board role exists.
WORKSPACE_TO_BOARD_ROLE: Mapping[WorkspaceRole, BoardRole] = MappingProxyType(
    {
        WorkspaceRole.ADMIN: BoardRole.ADMIN,
        WorkspaceRole.NORMAL: BoardRole.MEMBER,
    },
)


def parse_workspace_role(value: str | None) -> WorkspaceRole | None:
    if value is None:
        return None
    try:
        return WorkspaceRole(value)
    except ValueError:
        return None


def parse_board_role(value: str | None) -> BoardRole | None:
    if value is None:
        return None
    try:
        return BoardRole(value)
    except ValueError:
        return None


def registry_rows() -> list[tuple[str, RoleLevel, list[str]]]:
    """Flatten both tables into ``(name, level, permissions)`` rows for seeding."""
    rows: list[tuple[str, RoleLevel, list[str]]] = []
    for workspace_role, workspace_perms in WORKSPACE_ROLE_PERMISSIONS.items():
        rows.append(
            (workspace_role.value, RoleLevel.WORKSPACE, sorted(p.value for p in workspace_perms)),
        )
    for board_role, board_perms in BOARD_ROLE_PERMISSIONS.items():
        rows.append((board_role.value, RoleLevel.BOARD, sorted(p.value for p in board_perms)))
    return rows
