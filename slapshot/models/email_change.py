from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
import enum

from slapshot.db.session import Base
from slapshot.utils.datetime_utils import utcnow


class EmailChangeStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"
    expired = "expired"


class EmailChangeRequest(Base):
    __tablename__ = "email_change_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    current_email = Column(String(255), nullable=False)
    requested_email = Column(String(255), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    status = Column(
        Enum(EmailChangeStatus, name="emailchangestatus"),
        nullable=False,
        default=EmailChangeStatus.pending,
    )
    # SHA-256 of the raw tokens; the raw values only ever exist in the support email
    approve_token_hash = Column(String(64), nullable=False, unique=True)
    deny_token_hash = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    requested_ip = Column(String(64), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    decided_ip = Column(String(64), nullable=True)

    user = relationship("User")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the decision window has closed."""
        return (now or utcnow()) >= self.expires_at

    @property
    def is_pending(self) -> bool:
        return self.status == EmailChangeStatus.pending
