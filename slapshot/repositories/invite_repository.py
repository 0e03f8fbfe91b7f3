"""Repository for invite tracking."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import case
from sqlalchemy.orm import Session, joinedload

from slapshot.models.invite import InviteStatus, TeamInvite
from slapshot.models.team import MembershipStatus, TeamMember
from slapshot.models.user import User
from slapshot.repositories.base_repository import BaseRepository


class InviteRepository(BaseRepository[TeamInvite]):
    """Repository for TeamInvite database operations."""

    def __init__(self, db: Session):
        super().__init__(TeamInvite, db)

    def get_by_team_and_email(
        self, team_id: int, email: str, for_update: bool = False
    ) -> Optional[TeamInvite]:
        """
        Get the invite row for an address on a team.

        Args:
            team_id: Team ID
            email: Lower-cased invitee email
            for_update: Lock the row until the transaction ends

        Returns:
            TeamInvite or None
        """
        query = self.db.query(TeamInvite).filter(
            TeamInvite.team_id == team_id, TeamInvite.email == email
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_team_invites(self, team_id: int) -> List[TeamInvite]:
        """
        Get a team's invites: pending, then accepted, then the rest,
        most recently sent first within each group.

        Args:
            team_id: Team ID

        Returns:
            List of invites
        """
        status_order = case(
            (TeamInvite.status == InviteStatus.pending, 0),
            (TeamInvite.status == InviteStatus.accepted, 1),
            else_=2,
        )
        return (
            self.db.query(TeamInvite)
            .options(joinedload(TeamInvite.inviter))
            .filter(TeamInvite.team_id == team_id)
            .order_by(status_order, TeamInvite.last_sent_at.desc(), TeamInvite.id.desc())
            .all()
        )

    def get_unaccepted_with_active_member(
        self, team_id: Optional[int] = None
    ) -> List[Tuple[TeamInvite, datetime]]:
        """
        Find invites not yet accepted whose address belongs to an active member
        of the invited team.

        Args:
            team_id: Restrict to one team; None scans every team

        Returns:
            List of (invite, membership joined_at)
        """
        query = (
            self.db.query(TeamInvite, TeamMember.joined_at)
            .join(User, User.email == TeamInvite.email)
            .join(
                TeamMember,
                (TeamMember.user_id == User.id) & (TeamMember.team_id == TeamInvite.team_id),
            )
            .filter(
                TeamMember.status == MembershipStatus.active,
                TeamInvite.status != InviteStatus.accepted,
            )
        )
        if team_id is not None:
            query = query.filter(TeamInvite.team_id == team_id)
        return query.all()

    def delete_for_team(self, team_id: int) -> int:
        deleted = (
            self.db.query(TeamInvite)
            .filter(TeamInvite.team_id == team_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted
