"""
Permission Service - Centralized Authorization Logic

Every team-scoped action asks this service for the caller's role before it
touches anything. Checks only read; they never mutate.
"""

from sqlalchemy.orm import Session

from slapshot.core.errors import Forbidden, NotFound
from slapshot.models.team import Team, TeamMember, TeamRole
from slapshot.repositories.team_repository import TeamMemberRepository, TeamRepository


class PermissionService:
    """Centralized service for team permission checks."""

    @staticmethod
    def get_team_or_404(db: Session, team_id: int, for_update: bool = False) -> Team:
        """
        Get team by ID or raise NotFound.

        Args:
            db: Database session
            team_id: Team ID
            for_update: Lock the team row

        Returns:
            Team object
        """
        team = TeamRepository(db).get_by_id(team_id, for_update=for_update)
        if not team:
            raise NotFound("Team not found.")
        return team

    @staticmethod
    def get_active_membership(db: Session, team_id: int, user_id: int) -> TeamMember:
        """
        Get the caller's active membership row.

        Raises:
            Forbidden: If there is no active membership
        """
        member = TeamMemberRepository(db).get_active(team_id, user_id)
        if member is None:
            raise Forbidden("Team access denied.")
        return member

    @staticmethod
    def require_membership(db: Session, team_id: int, user_id: int) -> TeamRole:
        """
        Verify user is an active member of a team.

        Args:
            db: Database session
            team_id: Team ID to check membership for
            user_id: User ID to verify

        Returns:
            The member's role

        Raises:
            Forbidden: If user is not an active member
        """
        return PermissionService.get_active_membership(db, team_id, user_id).role

    @staticmethod
    def require_admin(db: Session, team_id: int, user_id: int) -> TeamRole:
        """
        Verify user is an active owner or admin of a team.

        Returns:
            The member's role (owner or admin)

        Raises:
            Forbidden: If user is not a member or only a regular member
        """
        role = PermissionService.require_membership(db, team_id, user_id)
        if role not in (TeamRole.owner, TeamRole.admin):
            raise Forbidden("Only team owners and admins can do that.")
        return role

    @staticmethod
    def require_owner(db: Session, team_id: int, user_id: int) -> TeamRole:
        """
        Verify user is the team's owner.

        Raises:
            Forbidden: If user is not the owner
        """
        role = PermissionService.require_membership(db, team_id, user_id)
        if role != TeamRole.owner:
            raise Forbidden("Only the team owner can do that.")
        return role

    @staticmethod
    def check_can_manage(actor_id: int, actor_role: TeamRole, target: TeamMember) -> None:
        """
        Guard for role changes and removals.

        Nobody acts on themselves, nobody acts on the owner, and only the
        owner acts on an admin.

        Raises:
            Forbidden: If the actor may not change the target
        """
        if target.user_id == actor_id:
            raise Forbidden("You cannot change your own membership.")
        if target.role == TeamRole.owner:
            raise Forbidden("The team owner cannot be changed or removed.")
        if target.role == TeamRole.admin and actor_role != TeamRole.owner:
            raise Forbidden("Only the team owner can change or remove an admin.")
