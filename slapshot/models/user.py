from sqlalchemy import Column, DateTime, Integer, String

from slapshot.db.session import Base
from slapshot.utils.datetime_utils import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Always stored lower-cased, which makes the unique index case-insensitive
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(120), nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

