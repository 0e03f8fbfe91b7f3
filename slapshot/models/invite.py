from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from slapshot.db.session import Base
from slapshot.utils.datetime_utils import utcnow


class InviteStatus(enum.Enum):
    pending = "pending"
    accepted = "accepted"
    denied = "denied"
    expired = "expired"


class TeamInvite(Base):
    """Audit row for invite emails sent to one address for one team."""

    __tablename__ = "team_invites"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    status = Column(
        Enum(InviteStatus, name="invitestatus"),
        nullable=False,
        default=InviteStatus.pending,
    )
    invited_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    send_count = Column(Integer, nullable=False, default=1)
    last_message = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_sent_at = Column(DateTime, default=utcnow, nullable=False)
    accepted_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("team_id", "email", name="unique_team_invite_email"),)

    inviter = relationship("User", foreign_keys=[invited_by_user_id])
