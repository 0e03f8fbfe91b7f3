"""Repository layer for database access."""

from slapshot.repositories.user_repository import UserRepository
from slapshot.repositories.team_repository import TeamRepository, TeamMemberRepository
from slapshot.repositories.invite_repository import InviteRepository
from slapshot.repositories.email_change_repository import EmailChangeRepository
from slapshot.repositories.action_window_repository import ActionWindowRepository
from slapshot.repositories.media_repository import MediaRepository

__all__ = [
    "UserRepository",
    "TeamRepository",
    "TeamMemberRepository",
    "InviteRepository",
    "EmailChangeRepository",
    "ActionWindowRepository",
    "MediaRepository",
]
