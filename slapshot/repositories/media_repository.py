"""Repository for team media items."""

from typing import List

from sqlalchemy.orm import Session, joinedload

from slapshot.models.media import MediaItem
from slapshot.repositories.base_repository import BaseRepository


class MediaRepository(BaseRepository[MediaItem]):
    """Repository for MediaItem operations."""

    def __init__(self, db: Session):
        super().__init__(MediaItem, db)

    def get_team_media(self, team_id: int) -> List[MediaItem]:
        """
        Get a team's media, newest first.

        Args:
            team_id: Team ID

        Returns:
            List of media items with uploaders loaded
        """
        return (
            self.db.query(MediaItem)
            .options(joinedload(MediaItem.uploader))
            .filter(MediaItem.team_id == team_id)
            .order_by(MediaItem.created_at.desc(), MediaItem.id.desc())
            .all()
        )

    def delete_for_team(self, team_id: int) -> int:
        deleted = (
            self.db.query(MediaItem)
            .filter(MediaItem.team_id == team_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted
