from sqlalchemy import BigInteger, Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
import enum

from slapshot.db.session import Base
from slapshot.utils.datetime_utils import utcnow


class MediaType(enum.Enum):
    photo = "photo"
    video = "video"


class StorageType(enum.Enum):
    upload = "upload"
    external = "external"


class MediaItem(Base):
    __tablename__ = "media_items"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    uploader_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    media_type = Column(Enum(MediaType, name="mediatype"), nullable=False)
    storage_type = Column(Enum(StorageType, name="storagetype"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    game_date = Column(Date, nullable=True)
    file_path = Column(String(255), nullable=True)
    external_url = Column(String(500), nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    mime_type = Column(String(100), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    uploader = relationship("User")
