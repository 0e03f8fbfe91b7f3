from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from slapshot.db.session import Base
from slapshot.utils.datetime_utils import utcnow


class UserActionWindow(Base):
    """Per-user counter for a rate-limited action within a rolling window."""

    __tablename__ = "user_action_windows"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action = Column(String(50), nullable=False)
    window_started_at = Column(DateTime, default=utcnow, nullable=False)
    count = Column(Integer, nullable=False, default=0)
    last_action_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "action", name="unique_user_action_window"),)
