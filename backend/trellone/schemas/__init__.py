"""Public schema exports shared across API route modules."""

from trellone.schemas.boards import (
    BoardCreate,
    BoardDetailRead,
    BoardMemberRoleUpdate,
    BoardMemberView,
    BoardRead,
    BoardUpdate,
    CardMoveRead,
    CardOrderUpdate,
    ColumnOrderUpdate,
    MoveCardToDifferentColumn,
)
from trellone.schemas.cards import (
    CardAttachment,
    CardAttachmentCreate,
    CardAttachmentUpdate,
    CardComment,
    CardCommentCreate,
    CardCreate,
    CardMemberUpdate,
    CardRead,
    CardUpdate,
)
from trellone.schemas.columns import ColumnCreate, ColumnRead, ColumnUpdate, ColumnWithCards
from trellone.schemas.common import OkResponse
from trellone.schemas.invitations import (
    BoardInvitationCreate,
    BoardInvitationUpdate,
    InvitationCreated,
    InvitationDetailRead,
    InvitationRead,
    InviteTokenVerify,
)
from trellone.schemas.roles import RoleRead
from trellone.schemas.users import UserPublic
from trellone.schemas.workspaces import (
    WorkspaceCreate,
    WorkspaceDetailRead,
    WorkspaceListItem,
    WorkspaceRead,
    WorkspaceUpdate,
)

__all__ = [
    "BoardCreate",
    "BoardDetailRead",
    "BoardInvitationCreate",
    "BoardInvitationUpdate",
    "BoardMemberRoleUpdate",
    "BoardMemberView",
    "BoardRead",
    "BoardUpdate",
    "CardAttachment",
    "CardAttachmentCreate",
    "CardAttachmentUpdate",
    "CardComment",
    "CardCommentCreate",
    "CardCreate",
    "CardMemberUpdate",
    "CardMoveRead",
    "CardOrderUpdate",
    "CardRead",
    "CardUpdate",
    "ColumnCreate",
    "ColumnOrderUpdate",
    "ColumnRead",
    "ColumnUpdate",
    "ColumnWithCards",
    "InvitationCreated",
    "InvitationDetailRead",
    "InvitationRead",
    "InviteTokenVerify",
    "MoveCardToDifferentColumn",
    "OkResponse",
    "RoleRead",
    "UserPublic",
    "WorkspaceCreate",
    "WorkspaceDetailRead",
    "WorkspaceListItem",
    "WorkspaceRead",
    "WorkspaceUpdate",
]
