"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from trellone.models.board_members import BoardMember
from trellone.models.boards import Board
from trellone.models.cards import Card
from trellone.models.columns import BoardColumn
from trellone.models.invitations import Invitation
from trellone.models.roles import Role
from trellone.models.users import User
from trellone.models.workspace_members import WorkspaceMember
from trellone.models.workspaces import Workspace

__all__ = [
    "Board",
    "BoardColumn",
    "BoardMember",
    "Card",
    "Invitation",
    "Role",
    "User",
    "Workspace",
    "WorkspaceMember",
]
