"""
Per-user rate windows persisted in ``user_action_windows``.

A window counts actions since ``window_started_at``; once the window length
has elapsed the next check starts a fresh window. A separate minimum interval
throttles back-to-back actions.
"""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from slapshot.core.errors import RateLimited
from slapshot.models.action_window import UserActionWindow
from slapshot.repositories.action_window_repository import ActionWindowRepository
from slapshot.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

INVITE_EMAIL = "invite_email"
EMAIL_CHANGE_REQUEST = "email_change_request"


class RateWindowService:
    """Check and record rate-limited user actions."""

    @staticmethod
    def _current_window(db: Session, user_id: int, action: str, window: timedelta) -> UserActionWindow:
        repo = ActionWindowRepository(db)
        now = utcnow()
        record = repo.get_for_user(user_id, action, for_update=True)
        if record is None:
            return repo.create(
                UserActionWindow(user_id=user_id, action=action, window_started_at=now, count=0)
            )
        if record.window_started_at <= now - window:
            record.window_started_at = now
            record.count = 0
        return record

    @staticmethod
    def check(
        db: Session,
        user_id: int,
        action: str,
        max_count: int,
        window: timedelta,
        min_interval: timedelta,
        limit_message: str,
        interval_message: str,
    ) -> UserActionWindow:
        """
        Ensure the user may perform the action now.

        Args:
            db: Database session
            user_id: Acting user
            action: Window name
            max_count: Actions allowed per window
            window: Window length
            min_interval: Minimum gap between two actions
            limit_message: Error when the window is exhausted
            interval_message: Error when acting too soon

        Returns:
            The locked window row, to pass to ``record``

        Raises:
            RateLimited: If either limit is hit
        """
        record = RateWindowService._current_window(db, user_id, action, window)
        now = utcnow()
        if record.count >= max_count:
            logger.info(f"User {user_id} hit the {action} window limit")
            raise RateLimited(limit_message)
        if record.last_action_at is not None and record.last_action_at > now - min_interval:
            raise RateLimited(interval_message)
        return record

    @staticmethod
    def record(db: Session, record: UserActionWindow) -> None:
        """Count one performed action; persisted with the caller's commit."""
        record.count += 1
        record.last_action_at = utcnow()
        db.flush()
