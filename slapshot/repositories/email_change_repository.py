"""Repository for email change requests."""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from slapshot.models.email_change import EmailChangeRequest, EmailChangeStatus
from slapshot.repositories.base_repository import BaseRepository


class EmailChangeRepository(BaseRepository[EmailChangeRequest]):
    """Repository for EmailChangeRequest database operations."""

    def __init__(self, db: Session):
        super().__init__(EmailChangeRequest, db)

    def get_by_token_hash(self, token_hash: str) -> Optional[EmailChangeRequest]:
        """
        Get and lock the request whose approve or deny hash matches.

        The row lock serializes concurrent redemptions of the same request.

        Args:
            token_hash: SHA-256 hex digest of a raw token

        Returns:
            EmailChangeRequest or None
        """
        return (
            self.db.query(EmailChangeRequest)
            .filter(
                or_(
                    EmailChangeRequest.approve_token_hash == token_hash,
                    EmailChangeRequest.deny_token_hash == token_hash,
                )
            )
            .with_for_update()
            .first()
        )

    def get_pending_for_user(self, user_id: int) -> List[EmailChangeRequest]:
        return (
            self.db.query(EmailChangeRequest)
            .filter(
                EmailChangeRequest.user_id == user_id,
                EmailChangeRequest.status == EmailChangeStatus.pending,
            )
            .order_by(EmailChangeRequest.created_at.desc())
            .all()
        )
