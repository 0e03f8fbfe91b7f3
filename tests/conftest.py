"""
Pytest configuration and fixtures for testing the Slapshot Snapshot API.
"""
import os
import sys
from email.message import Message
from typing import Callable, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Add the parent directory to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slapshot.main import app
from slapshot.core.config import settings
from slapshot.core.rate_limit import limiter
from slapshot.core.security import create_session_token
from slapshot.db.session import Base, configure_sqlite, get_db
from slapshot.models.team import MembershipStatus, Team, TeamMember, TeamRole
from slapshot.models.user import User
from slapshot.services.team_service import TeamService
from slapshot.utils import email as email_module
from slapshot.utils.hash import hash_password

PASSWORD = "TestPassword123!"

# Create in-memory SQLite database for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = configure_sqlite(
    create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Create a fresh database for each test function.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    # Rate limit counters live in process memory and would leak between tests
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def upload_root(tmp_path, monkeypatch) -> str:
    """Point blob storage at a per-test directory."""
    root = tmp_path / "uploads"
    root.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_ROOT", str(root))
    return str(root)


@pytest.fixture(autouse=True)
def no_min_interval(monkeypatch):
    """Back-to-back sends are allowed unless a test sets an interval itself."""
    monkeypatch.setattr(settings, "INVITE_EMAIL_MIN_INTERVAL_SECONDS", 0)
    monkeypatch.setattr(settings, "EMAIL_CHANGE_MIN_INTERVAL_SECONDS", 0)


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> List[Dict[str, str]]:
    """
    Capture outgoing mail instead of talking to an SMTP relay.
    """
    sent: List[Dict[str, str]] = []

    def fake_deliver(to_email: str, msg: Message) -> None:
        plain = msg.get_payload()[0]
        sent.append(
            {
                "to": to_email,
                "subject": msg["Subject"],
                "reply_to": msg["Reply-To"],
                "body": plain.get_payload(decode=True).decode("utf-8"),
            }
        )

    monkeypatch.setattr(email_module, "_deliver", fake_deliver)
    return sent


@pytest.fixture
def mail_down(monkeypatch):
    """Make every delivery attempt fail."""
    def failing_deliver(to_email: str, msg: Message) -> None:
        raise ConnectionRefusedError("relay unavailable")

    monkeypatch.setattr(email_module, "_deliver", failing_deliver)


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """
    Factory for users with the shared test password.
    """
    def _make_user(email: str, display_name: str) -> User:
        user = User(
            email=email,
            display_name=display_name,
            password_hash=hash_password(PASSWORD),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def owner_user(make_user) -> User:
    return make_user("olivia@example.com", "Olivia Owner")


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user("adam@example.com", "Adam Admin")


@pytest.fixture
def member_user(make_user) -> User:
    return make_user("mia@example.com", "Mia Member")


@pytest.fixture
def outsider_user(make_user) -> User:
    return make_user("oscar@example.com", "Oscar Outsider")


@pytest.fixture
def add_member(db: Session) -> Callable[..., TeamMember]:
    """
    Factory adding a user to a team with a given role.
    """
    def _add_member(team: Team, user: User, role: TeamRole = TeamRole.member) -> TeamMember:
        member = TeamMember(
            team_id=team.id,
            user_id=user.id,
            role=role,
            status=MembershipStatus.active,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _add_member


@pytest.fixture
def team(db: Session, owner_user: User, admin_user: User, member_user: User, add_member) -> Team:
    """
    "Ice Storm": owned by Olivia, with Adam as admin and Mia as member.
    """
    team = TeamService.create_team(db, owner_user, "Ice Storm", {"season": "2025-26"})
    add_member(team, admin_user, TeamRole.admin)
    add_member(team, member_user, TeamRole.member)
    return team


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    """
    Build bearer headers for a user.
    """
    def _auth_headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_session_token(user)}"}

    return _auth_headers


@pytest.fixture
def api(client: TestClient, auth_headers):
    """
    Call one action. ``as_user`` authenticates with a bearer header; GET
    actions send ``params`` in the query string, POST actions send ``json``.
    """
    def _api(
        action: str,
        method: str = "POST",
        as_user: Optional[User] = None,
        params: Optional[dict] = None,
        **kwargs,
    ):
        headers = auth_headers(as_user) if as_user else {}
        query = {"action": action, **(params or {})}
        return client.request(method, "/api", params=query, headers=headers, **kwargs)

    return _api
