"""Team and membership repositories."""

from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from slapshot.models.team import MembershipStatus, Team, TeamMember, TeamRole
from slapshot.models.user import User
from slapshot.repositories.base_repository import BaseRepository


class TeamRepository(BaseRepository[Team]):
    """Repository for Team model operations."""

    def __init__(self, db: Session):
        super().__init__(Team, db)

    def get_by_join_code(self, join_code: str) -> Optional[Team]:
        """
        Get team by its exact join code.

        Args:
            join_code: Upper-cased join code

        Returns:
            Team or None if not found
        """
        return self.db.query(Team).filter(Team.join_code == join_code).first()

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(Team.id).filter(Team.slug == slug).first() is not None

    def join_code_exists(self, join_code: str) -> bool:
        return self.db.query(Team.id).filter(Team.join_code == join_code).first() is not None

    def get_user_teams(self, user_id: int) -> List[tuple]:
        """
        Get the teams a user actively belongs to, with their role and member count.

        Args:
            user_id: User ID

        Returns:
            List of (Team, TeamRole, member_count) ordered by team name
        """
        member_count = (
            self.db.query(func.count(TeamMember.id))
            .filter(
                TeamMember.team_id == Team.id,
                TeamMember.status == MembershipStatus.active,
            )
            .correlate(Team)
            .scalar_subquery()
        )
        return (
            self.db.query(Team, TeamMember.role, member_count)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .filter(
                TeamMember.user_id == user_id,
                TeamMember.status == MembershipStatus.active,
            )
            .order_by(Team.name, Team.id)
            .all()
        )


class TeamMemberRepository(BaseRepository[TeamMember]):
    """Repository for TeamMember model operations."""

    def __init__(self, db: Session):
        super().__init__(TeamMember, db)

    def get_by_team_and_user(
        self, team_id: int, user_id: int, for_update: bool = False
    ) -> Optional[TeamMember]:
        """
        Get the membership row for a team and user regardless of status.

        Args:
            team_id: Team ID
            user_id: User ID
            for_update: Lock the row until the transaction ends

        Returns:
            TeamMember or None if not found
        """
        query = self.db.query(TeamMember).filter(
            TeamMember.team_id == team_id, TeamMember.user_id == user_id
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_active(self, team_id: int, user_id: int) -> Optional[TeamMember]:
        member = self.get_by_team_and_user(team_id, user_id)
        if member is None or not member.is_active:
            return None
        return member

    def get_active_members(self, team_id: int) -> List[TeamMember]:
        """
        Get active members with their users, owner first, then admins, then members.

        Args:
            team_id: Team ID

        Returns:
            List of team members
        """
        role_order = case(
            (TeamMember.role == TeamRole.owner, 0),
            (TeamMember.role == TeamRole.admin, 1),
            else_=2,
        )
        return (
            self.db.query(TeamMember)
            .join(User, User.id == TeamMember.user_id)
            .options(joinedload(TeamMember.user))
            .filter(
                TeamMember.team_id == team_id,
                TeamMember.status == MembershipStatus.active,
            )
            .order_by(role_order, func.lower(User.display_name), TeamMember.id)
            .all()
        )

    def count_active_owners(self, team_id: int) -> int:
        return (
            self.db.query(func.count(TeamMember.id))
            .filter(
                TeamMember.team_id == team_id,
                TeamMember.role == TeamRole.owner,
                TeamMember.status == MembershipStatus.active,
            )
            .scalar()
        )

    def delete_for_team(self, team_id: int) -> int:
        deleted = (
            self.db.query(TeamMember)
            .filter(TeamMember.team_id == team_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted
