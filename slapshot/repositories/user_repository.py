"""User repository for database operations."""

from typing import Optional

from sqlalchemy.orm import Session

from slapshot.models.user import User
from slapshot.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email, ignoring case.

        Args:
            email: User email

        Returns:
            User or None if not found
        """
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def email_taken_by_other(self, email: str, user_id: int) -> bool:
        """
        Check whether an email belongs to an account other than user_id.

        Args:
            email: Email to look up
            user_id: Account allowed to own it

        Returns:
            True if a different account uses the email
        """
        owner = self.get_by_email(email)
        return owner is not None and owner.id != user_id
