"""Repository for per-user rate windows."""

from typing import Optional

from sqlalchemy.orm import Session

from slapshot.models.action_window import UserActionWindow
from slapshot.repositories.base_repository import BaseRepository


class ActionWindowRepository(BaseRepository[UserActionWindow]):
    """Repository for UserActionWindow operations."""

    def __init__(self, db: Session):
        super().__init__(UserActionWindow, db)

    def get_for_user(
        self, user_id: int, action: str, for_update: bool = False
    ) -> Optional[UserActionWindow]:
        query = self.db.query(UserActionWindow).filter(
            UserActionWindow.user_id == user_id, UserActionWindow.action == action
        )
        if for_update:
            query = query.with_for_update()
        return query.first()
