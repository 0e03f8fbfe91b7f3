"""
Email-change approval workflow.

A user cannot change their sign-in email on their own. They file a request,
support receives one email holding an approve link and a deny link, and
whichever link is redeemed first decides the request:

    pending -> approved | denied | expired

Raw tokens only ever exist inside that support email; the database keeps
their SHA-256 digests.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slapshot.core.config import settings
from slapshot.core.errors import (
    Conflict,
    Forbidden,
    Gone,
    InternalError,
    MigrationRequired,
    NotFound,
    ValidationError,
)
from slapshot.models.email_change import EmailChangeRequest, EmailChangeStatus
from slapshot.models.user import User
from slapshot.repositories import EmailChangeRepository, UserRepository
from slapshot.services.rate_window_service import EMAIL_CHANGE_REQUEST, RateWindowService
from slapshot.utils import email as mailer
from slapshot.utils.datetime_utils import isoformat, utcnow
from slapshot.utils.tokens import generate_token, hash_token

logger = logging.getLogger(__name__)

APPROVE = "approve"
DENY = "deny"
DECISIONS = (APPROVE, DENY)
EMAIL_CHANGE_MIGRATION = "003_email_change_requests"


def _decision_link(token: str, decision: str) -> str:
    return (
        f"{settings.APP_URL}/api?action=account_email_request_decision"
        f"&decision={decision}&token={token}"
    )


class EmailChangeService:
    """Service for email change requests and their decisions."""

    @staticmethod
    def _repository(db: Session) -> EmailChangeRepository:
        repo = EmailChangeRepository(db)
        if not repo.table_exists():
            logger.error("email_change_requests table is missing")
            raise MigrationRequired("Email change requests", EMAIL_CHANGE_MIGRATION)
        return repo

    @staticmethod
    def get_pending_request(db: Session, user_id: int) -> Optional[EmailChangeRequest]:
        """The user's open, unexpired request, if any. Read-only."""
        repo = EmailChangeRepository(db)
        if not repo.table_exists():
            return None
        now = utcnow()
        for request in repo.get_pending_for_user(user_id):
            if not request.is_expired(now):
                return request
        return None

    @staticmethod
    def request_change(
        db: Session,
        current_user: User,
        requested_email: str,
        reason: str,
        requested_ip: Optional[str] = None,
    ) -> EmailChangeRequest:
        """
        File an email change request and notify support.

        The request and its support notification succeed or fail together: if
        the email cannot be handed to the relay nothing is persisted.

        Raises:
            ValidationError: Same email as the current one
            Conflict: Email used by another account, or a request is already open
            RateLimited: Too many requests
            InternalError: Support notification could not be sent
        """
        repo = EmailChangeService._repository(db)
        requested_email = requested_email.strip().lower()
        reason = reason.strip()
        now = utcnow()

        if requested_email == current_user.email:
            raise ValidationError("The new email matches your current email.")
        if UserRepository(db).email_taken_by_other(requested_email, current_user.id):
            raise Conflict("That email is already used by another account.")

        for open_request in repo.get_pending_for_user(current_user.id):
            if not open_request.is_expired(now):
                raise Conflict("You already have a pending email change request.")
            open_request.status = EmailChangeStatus.expired
            open_request.decided_at = now

        window = RateWindowService.check(
            db,
            current_user.id,
            EMAIL_CHANGE_REQUEST,
            max_count=settings.EMAIL_CHANGE_MAX_PER_DAY,
            window=timedelta(hours=24),
            min_interval=timedelta(seconds=settings.EMAIL_CHANGE_MIN_INTERVAL_SECONDS),
            limit_message="Too many email change requests today. Try again tomorrow.",
            interval_message="Please wait a moment before submitting another request.",
        )

        approve_token = generate_token()
        deny_token = generate_token()
        request = repo.create(
            EmailChangeRequest(
                user_id=current_user.id,
                current_email=current_user.email,
                requested_email=requested_email,
                reason=reason,
                status=EmailChangeStatus.pending,
                approve_token_hash=hash_token(approve_token),
                deny_token_hash=hash_token(deny_token),
                expires_at=now + timedelta(days=settings.EMAIL_CHANGE_TTL_DAYS),
                created_at=now,
                requested_ip=requested_ip,
            )
        )
        RateWindowService.record(db, window)

        sent = EmailChangeService._notify_support(current_user, request, approve_token, deny_token)
        if not sent:
            db.rollback()
            raise InternalError("Unable to send the approval request. Please try again later.")

        db.commit()
        db.refresh(request)
        logger.info(f"User {current_user.id} requested email change (request {request.id})")
        return request

    @staticmethod
    def _notify_support(
        user: User, request: EmailChangeRequest, approve_token: str, deny_token: str
    ) -> bool:
        subject = f"[{settings.APP_NAME}] Email change request #{request.id}"
        body = "\r\n".join(
            [
                "A user asked to change the email address on their account.",
                "",
                f"User ID: {user.id}",
                f"Display name: {user.display_name}",
                f"Current email: {request.current_email}",
                f"Requested email: {request.requested_email}",
                f"Requested from IP: {request.requested_ip or 'unknown'}",
                f"Requested at: {isoformat(request.created_at)}",
                f"Link expires at: {isoformat(request.expires_at)}",
                "",
                "Reason:",
                request.reason,
                "",
                "Approve (one-time link):",
                _decision_link(approve_token, APPROVE),
                "",
                "Deny (one-time link):",
                _decision_link(deny_token, DENY),
            ]
        )
        return mailer.send_notification(
            settings.SUPPORT_EMAIL, subject, body, reply_to=request.current_email
        )

    @staticmethod
    def decide(
        db: Session, token: str, decision: str, decided_ip: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Redeem an approve or deny link.

        The request row is locked before its status is read so that two
        redemptions racing on one request resolve to a single decision.

        Raises:
            ValidationError: Unknown decision or missing token
            NotFound: No request carries this token
            Forbidden: Token belongs to the other decision
            Conflict: Request already decided, or the email was claimed meanwhile
            Gone: Request expired
        """
        if decision not in DECISIONS:
            raise ValidationError("Decision must be approve or deny.")
        if not token:
            raise ValidationError("Decision token required.")

        repo = EmailChangeService._repository(db)
        token_hash = hash_token(token)
        request = repo.get_by_token_hash(token_hash)
        if request is None:
            raise NotFound("Email change request not found or link invalid.")

        token_decision = APPROVE if request.approve_token_hash == token_hash else DENY
        if token_decision != decision:
            raise Forbidden("This link cannot be used for that decision.")
        if not request.is_pending:
            raise Conflict(f"This request was already {request.status.value}.")

        now = utcnow()
        if request.is_expired(now):
            EmailChangeService._finish(db, request, EmailChangeStatus.expired, decided_ip)
            raise Gone("This email change request has expired.")

        user = UserRepository(db).get_by_id(request.user_id, for_update=True)
        old_email = user.email

        if decision == APPROVE:
            if UserRepository(db).email_taken_by_other(request.requested_email, user.id):
                EmailChangeService._finish(db, request, EmailChangeStatus.denied, decided_ip)
                EmailChangeService._notify_user(request, old_email)
                raise Conflict("The requested email is now used by another account.")

            user.email = request.requested_email
            request.status = EmailChangeStatus.approved
            request.decided_at = now
            request.decided_ip = decided_ip
            try:
                db.commit()
            except IntegrityError:
                # Another account claimed the address between the check and the write
                db.rollback()
                request = repo.get_by_token_hash(token_hash)
                EmailChangeService._finish(db, request, EmailChangeStatus.denied, decided_ip)
                EmailChangeService._notify_user(request, old_email)
                raise Conflict("The requested email is now used by another account.")
        else:
            EmailChangeService._finish(db, request, EmailChangeStatus.denied, decided_ip)

        logger.info(f"Email change request {request.id} {request.status.value}")
        EmailChangeService._notify_user(request, old_email)
        return {
            "request_id": request.id,
            "user_id": request.user_id,
            "status": request.status.value,
        }

    @staticmethod
    def _finish(
        db: Session,
        request: EmailChangeRequest,
        status: EmailChangeStatus,
        decided_ip: Optional[str],
    ) -> None:
        """Move a pending request to a terminal state and commit."""
        request.status = status
        request.decided_at = utcnow()
        request.decided_ip = decided_ip
        db.commit()

    @staticmethod
    def _notify_user(request: EmailChangeRequest, old_email: str) -> None:
        """Best-effort notice after a committed decision; failures are only logged."""
        if request.status == EmailChangeStatus.approved:
            subject = f"Your {settings.APP_NAME} email address was changed"
            body = (
                f"The email address on your {settings.APP_NAME} account was changed from "
                f"{old_email} to {request.requested_email}.\r\n\r\n"
                "Sign in with the new address from now on. If you did not ask for this, "
                f"contact {settings.SUPPORT_EMAIL} right away."
            )
            recipients = [old_email, request.requested_email]
        else:
            subject = f"Your {settings.APP_NAME} email change request was denied"
            body = (
                f"Your request to change your account email to {request.requested_email} "
                "was not approved. Your account email is unchanged.\r\n\r\n"
                f"Questions? Reply to this message or write to {settings.SUPPORT_EMAIL}."
            )
            recipients = [old_email]

        for recipient in recipients:
            if not mailer.send_notification(
                recipient, subject, body, reply_to=settings.SUPPORT_EMAIL
            ):
                logger.warning(
                    f"Decision notice for email change request {request.id} not delivered to {recipient}"
                )
