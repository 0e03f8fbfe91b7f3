"""
Authentication Service Module.
Handles registration, login and profile updates, plus the session context the
client renders after each of them.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slapshot.core.errors import AuthenticationRequired, Conflict, Forbidden, ValidationError
from slapshot.models.user import User
from slapshot.repositories import UserRepository
from slapshot.services.email_change_service import EmailChangeService
from slapshot.services.team_service import TeamService
from slapshot.utils.datetime_utils import isoformat
from slapshot.utils.hash import MIN_PASSWORD_LENGTH, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Service for managing authentication and user operations."""

    @staticmethod
    def register(
        db: Session,
        email: str,
        display_name: str,
        password: str,
        team_name: Optional[str] = None,
    ) -> User:
        """
        Create an account, optionally with a first team owned by it.

        The user, team and owner membership are committed together.

        Raises:
            Conflict: If the email is already registered
        """
        user_repo = UserRepository(db)
        email = email.strip().lower()
        if user_repo.get_by_email(email):
            raise Conflict("Email already exists.")

        try:
            user = user_repo.create(
                User(
                    email=email,
                    display_name=display_name.strip(),
                    password_hash=hash_password(password),
                )
            )
            if team_name:
                TeamService.create_team(db, user, team_name.strip(), commit=False)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Email already exists.")

        db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthenticationRequired: Unknown email or wrong password, without saying which
        """
        user = UserRepository(db).get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationRequired("Invalid email or password.")
        return user

    @staticmethod
    def update_profile(
        db: Session,
        user: User,
        display_name: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> User:
        """
        Update the display name and/or password.

        A new password needs the current one. The email address is not
        editable here; see EmailChangeService.
        """
        if display_name is not None:
            user.display_name = display_name.strip()

        if new_password:
            if len(new_password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
                )
            if not current_password or not verify_password(current_password, user.password_hash):
                raise Forbidden("Current password is incorrect.")
            user.password_hash = hash_password(new_password)
            logger.info(f"User {user.id} changed their password")

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def session_context(db: Session, user: User) -> Dict[str, Any]:
        """User, their teams and any open email change request."""
        pending = EmailChangeService.get_pending_request(db, user.id)
        return {
            "user": {
                "id": user.id,
                "email": user.email,
                "display_name": user.display_name,
            },
            "teams": TeamService.list_user_teams(db, user.id),
            "pending_email_change": (
                {
                    "id": pending.id,
                    "requested_email": pending.requested_email,
                    "created_at": isoformat(pending.created_at),
                    "expires_at": isoformat(pending.expires_at),
                }
                if pending
                else None
            ),
        }
