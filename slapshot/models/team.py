from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum

from slapshot.db.session import Base
from slapshot.utils.datetime_utils import utcnow


class TeamRole(enum.Enum):
    owner = "owner"
    admin = "admin"
    member = "member"


class MembershipStatus(enum.Enum):
    active = "active"
    removed = "removed"


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    slug = Column(String(140), nullable=False, unique=True, index=True)
    join_code = Column(String(16), nullable=False, unique=True, index=True)
    age_group = Column(String(40), nullable=True)
    season = Column(String(40), nullable=True)
    level = Column(String(40), nullable=True)
    rink = Column(String(120), nullable=True)
    city = Column(String(120), nullable=True)
    notes = Column(Text, nullable=True)
    logo_path = Column(String(255), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User", foreign_keys=[created_by])


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(TeamRole, name="teamrole"), nullable=False, default=TeamRole.member)
    status = Column(
        Enum(MembershipStatus, name="membershipstatus"),
        nullable=False,
        default=MembershipStatus.active,
    )
    joined_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Ensure a user can only be in a team once
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="unique_team_user"),)

    team = relationship("Team")
    user = relationship("User")

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.active
