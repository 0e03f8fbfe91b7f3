"""
Service for invite emails and invite tracking.

Tracking is a best-effort audit trail beside the real membership data: an
invite counts as accepted once its address belongs to an active member of
the team, whether or not anyone ever clicked anything. When the invite table
has not been migrated the tracker reports itself disabled instead of failing
the call it rides along with.
"""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from slapshot.core.config import settings
from slapshot.core.errors import InternalError, ValidationError
from slapshot.models.invite import InviteStatus, TeamInvite
from slapshot.models.user import User
from slapshot.repositories import InviteRepository
from slapshot.services.permission_service import PermissionService
from slapshot.services.rate_window_service import INVITE_EMAIL, RateWindowService
from slapshot.utils import email as mailer
from slapshot.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500


class InviteService:
    """Service for invite-related operations."""

    @staticmethod
    def tracking_enabled(db: Session) -> bool:
        """Check if the invite table is available."""
        try:
            return InviteRepository(db).table_exists()
        except SQLAlchemyError as e:
            logger.warning(f"Invite tracking unavailable: {str(e)}")
            return False

    @staticmethod
    def reconcile_invites(db: Session, team_id: Optional[int] = None, commit: bool = True) -> int:
        """
        Mark invites accepted when the invited address is an active member.

        Idempotent. ``accepted_at`` is backfilled from the membership's
        ``joined_at`` when it was never set. Without a team every team is
        swept.

        Args:
            db: Database session
            team_id: Team to reconcile, or None for all teams
            commit: Commit the changes

        Returns:
            Number of invites changed
        """
        matches = InviteRepository(db).get_unaccepted_with_active_member(team_id)
        for invite, joined_at in matches:
            invite.status = InviteStatus.accepted
            if invite.accepted_at is None:
                invite.accepted_at = joined_at
        if matches:
            db.flush()
            logger.info(f"Reconciled {len(matches)} invite(s) as accepted")
        if commit:
            db.commit()
        return len(matches)

    @staticmethod
    def list_invites(db: Session, team_id: int) -> Tuple[List[TeamInvite], bool]:
        """
        Reconcile, then list a team's invites.

        Returns:
            (invites, invite_tracking_enabled)
        """
        if not InviteService.tracking_enabled(db):
            return [], False
        try:
            InviteService.reconcile_invites(db, team_id)
            return InviteRepository(db).get_team_invites(team_id), True
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Invite tracking unavailable for team {team_id}: {str(e)}")
            return [], False

    @staticmethod
    def record_invite_send(
        db: Session, team_id: int, inviter: User, email: str, message_preview: str = ""
    ) -> TeamInvite:
        """
        Upsert the invite row for a sent email.

        Re-sends bump the counter and refresh the sender; an accepted invite
        stays accepted, while denied or expired ones are re-opened.
        """
        repo = InviteRepository(db)
        now = utcnow()
        preview = (message_preview or "")[:MAX_MESSAGE_LENGTH] or None

        invite = repo.get_by_team_and_email(team_id, email, for_update=True)
        if invite is None:
            invite = repo.create(
                TeamInvite(
                    team_id=team_id,
                    email=email,
                    status=InviteStatus.pending,
                    invited_by_user_id=inviter.id,
                    send_count=1,
                    last_message=preview,
                    created_at=now,
                    last_sent_at=now,
                )
            )
        else:
            invite.send_count = (invite.send_count or 0) + 1
            invite.last_sent_at = now
            invite.invited_by_user_id = inviter.id
            invite.last_message = preview
            if invite.status in (InviteStatus.denied, InviteStatus.expired):
                invite.status = InviteStatus.pending
            repo.update(invite)

        db.commit()
        return invite

    @staticmethod
    def send_invite_email(
        db: Session, team_id: int, current_user: User, email: str, message: str = ""
    ) -> bool:
        """
        Email a team's join code to an address and track the send.

        Any active member may invite. The email is the primary operation;
        tracking failures are logged and reported through the returned flag.

        Returns:
            invite_tracking_enabled
        """
        PermissionService.require_membership(db, team_id, current_user.id)
        email = email.strip().lower()
        message = (message or "").strip()
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError("Custom message must be 500 characters or fewer.")

        window = RateWindowService.check(
            db,
            current_user.id,
            INVITE_EMAIL,
            max_count=settings.INVITE_EMAIL_MAX_PER_HOUR,
            window=timedelta(hours=1),
            min_interval=timedelta(seconds=settings.INVITE_EMAIL_MIN_INTERVAL_SECONDS),
            limit_message="Invite email rate limit reached. Try again later.",
            interval_message="Please wait a few seconds before sending another invite.",
        )
        team = PermissionService.get_team_or_404(db, team_id)
        team_name, join_code = team.name, team.join_code
        # Release row locks before talking to the mail relay
        db.commit()

        sent = mailer.send_team_invite_email(
            to_email=email,
            team_name=team_name,
            join_code=join_code,
            sender_name=current_user.display_name or "A team member",
            message=message,
        )
        if not sent:
            raise InternalError("Email send failed. Verify your server mail configuration.")

        RateWindowService.record(db, window)
        db.commit()

        if not InviteService.tracking_enabled(db):
            return False
        try:
            InviteService.record_invite_send(db, team_id, current_user, email, message)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Invite to {email} for team {team_id} sent but not tracked: {str(e)}")
            return False
        return True
