"""
Membership engine: joining by code, role changes and removals.

Membership rows are never deleted while the team exists. Removal flips the
status to ``removed`` and a later join with the team's code flips it back.
"""
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slapshot.core.errors import NotFound, ValidationError
from slapshot.models.team import MembershipStatus, Team, TeamMember, TeamRole
from slapshot.models.user import User
from slapshot.repositories import TeamMemberRepository, TeamRepository
from slapshot.services.permission_service import PermissionService

logger = logging.getLogger(__name__)

MIN_JOIN_CODE_LENGTH = 6
ASSIGNABLE_ROLES = (TeamRole.admin, TeamRole.member)


class MembershipService:
    """Service for team membership changes."""

    @staticmethod
    def join_team(db: Session, current_user: User, join_code: str) -> Team:
        """
        Join a team by its join code.

        A fresh membership starts as an active member. An existing row is
        re-activated and keeps whatever role it stored, so joining twice is a
        no-op.
        """
        join_code = (join_code or "").strip().upper()
        if len(join_code) < MIN_JOIN_CODE_LENGTH:
            raise ValidationError("Valid team join code required.")

        team = TeamRepository(db).get_by_join_code(join_code)
        if team is None:
            raise NotFound("Join code not found.")

        member_repo = TeamMemberRepository(db)
        member = member_repo.get_by_team_and_user(team.id, current_user.id, for_update=True)
        if member is None:
            try:
                with db.begin_nested():
                    member_repo.create(
                        TeamMember(
                            team_id=team.id,
                            user_id=current_user.id,
                            role=TeamRole.member,
                            status=MembershipStatus.active,
                        )
                    )
            except IntegrityError:
                # A concurrent join inserted the row first; fall through to re-activation
                member = member_repo.get_by_team_and_user(team.id, current_user.id, for_update=True)

        if member is not None and member.status != MembershipStatus.active:
            member.status = MembershipStatus.active
            logger.info(f"User {current_user.id} re-joined team {team.id} as {member.role.value}")

        db.commit()
        return team

    @staticmethod
    def list_members(db: Session, team_id: int, current_user: User) -> List[TeamMember]:
        """List active members. Any active member can view the list."""
        PermissionService.require_membership(db, team_id, current_user.id)
        PermissionService.get_team_or_404(db, team_id)
        return TeamMemberRepository(db).get_active_members(team_id)

    @staticmethod
    def _locked_target(db: Session, team_id: int, target_user_id: int) -> TeamMember:
        target = TeamMemberRepository(db).get_by_team_and_user(
            team_id, target_user_id, for_update=True
        )
        if target is None or not target.is_active:
            raise NotFound("Team member not found.")
        return target

    @staticmethod
    def set_member_role(
        db: Session, team_id: int, current_user: User, target_user_id: int, new_role: TeamRole
    ) -> TeamMember:
        """
        Promote a member to admin or demote an admin to member.

        Owners and admins may change roles; nobody changes their own role or
        the owner's, and only the owner changes an admin's.
        """
        if new_role not in ASSIGNABLE_ROLES:
            raise ValidationError("Role must be admin or member.")

        actor_role = PermissionService.require_admin(db, team_id, current_user.id)
        target = MembershipService._locked_target(db, team_id, target_user_id)
        PermissionService.check_can_manage(current_user.id, actor_role, target)

        if target.role != new_role:
            target.role = new_role
            logger.info(
                f"User {current_user.id} set role of user {target_user_id} "
                f"in team {team_id} to {new_role.value}"
            )
        db.commit()
        db.refresh(target)
        return target

    @staticmethod
    def remove_member(db: Session, team_id: int, current_user: User, target_user_id: int) -> TeamMember:
        """
        Remove a member from the team under the same rules as role changes.

        The row stays for history with status removed and role reset to member.
        """
        actor_role = PermissionService.require_admin(db, team_id, current_user.id)
        target = MembershipService._locked_target(db, team_id, target_user_id)
        PermissionService.check_can_manage(current_user.id, actor_role, target)

        target.status = MembershipStatus.removed
        target.role = TeamRole.member
        db.commit()
        db.refresh(target)
        logger.info(f"User {current_user.id} removed user {target_user_id} from team {team_id}")
        return target
