"""
Tests for team directory actions: creation, updates, logos and deletion.
"""
import os
from io import BytesIO

import pytest
from PIL import Image
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slapshot.core.errors import InternalError
from slapshot.models.invite import TeamInvite
from slapshot.models.media import MediaItem
from slapshot.models.team import Team, TeamMember, TeamRole
from slapshot.models.user import User
from slapshot.repositories import TeamRepository
from slapshot.services import team_service
from slapshot.services.team_service import TeamService
from slapshot.utils.tokens import JOIN_CODE_ALPHABET


def image_bytes(image_format: str) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (16, 16), (20, 60, 160)).save(buf, image_format)
    return buf.getvalue()


PNG_BYTES = image_bytes("PNG")


class TestTeamCreation:
    """Test team creation functionality."""

    def test_create_team_success(self, api, owner_user: User, db: Session):
        response = api(
            "team_create",
            as_user=owner_user,
            json={"name": "Ice Storm", "age_group": "U12", "season": "2025-26", "rink": "North Arena"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["team"]["name"] == "Ice Storm"
        assert data["team"]["slug"] == "ice-storm"
        assert data["team"]["age_group"] == "U12"
        assert data["teams"][0]["role"] == "owner"

        team = db.query(Team).filter(Team.id == data["team"]["id"]).one()
        assert team.created_by == owner_user.id
        members = db.query(TeamMember).filter(TeamMember.team_id == team.id).all()
        assert len(members) == 1
        assert members[0].role == TeamRole.owner

    def test_join_code_format(self, db: Session, owner_user: User):
        team = TeamService.create_team(db, owner_user, "Ice Storm")
        assert len(team.join_code) == 8
        assert all(c in JOIN_CODE_ALPHABET for c in team.join_code)

    def test_slug_collision_appends_counter(self, db: Session, owner_user: User):
        first = TeamService.create_team(db, owner_user, "Ice Storm")
        second = TeamService.create_team(db, owner_user, "Ice Storm!")
        third = TeamService.create_team(db, owner_user, "ice storm")
        assert [first.slug, second.slug, third.slug] == ["ice-storm", "ice-storm-2", "ice-storm-3"]

    def test_unsluggable_name_falls_back(self, db: Session, owner_user: User):
        team = TeamService.create_team(db, owner_user, "!!")
        assert team.slug == "team"

    def test_join_code_exhaustion_is_internal(self, db: Session, owner_user: User, monkeypatch):
        monkeypatch.setattr(TeamRepository, "join_code_exists", lambda self, code: True)
        with pytest.raises(InternalError):
            TeamService.create_team(db, owner_user, "Ice Storm")
        assert db.query(Team).count() == 0

    def test_insert_race_is_retried(self, db: Session, owner_user: User, monkeypatch):
        """A join code taken between the check and the insert is regenerated."""
        existing = TeamService.create_team(db, owner_user, "Thunder")
        codes = iter([existing.join_code, "ZZZZ2222"])
        monkeypatch.setattr(team_service, "random_code", lambda: next(codes))
        monkeypatch.setattr(TeamRepository, "join_code_exists", lambda self, code: False)

        team = TeamService.create_team(db, owner_user, "Ice Storm")
        assert team.join_code == "ZZZZ2222"
        assert db.query(Team).count() == 2

    def test_create_team_name_too_short(self, api, owner_user: User):
        response = api("team_create", as_user=owner_user, json={"name": " I "})
        assert response.status_code == 422
        assert response.json()["error"] == "Team name must be at least 2 characters."


class TestTeamUpdate:
    """Test team metadata updates."""

    def test_admin_can_update(self, api, admin_user: User, team: Team, db: Session):
        old_slug, old_code = team.slug, team.join_code
        response = api(
            "team_update",
            as_user=admin_user,
            json={"team_id": team.id, "name": "Ice Storm Elite", "city": "Duluth", "season": ""},
        )
        assert response.status_code == 200
        data = response.json()["team"]
        assert data["name"] == "Ice Storm Elite"
        assert data["city"] == "Duluth"
        assert data["season"] is None
        # Identity stays put
        assert data["slug"] == old_slug
        assert data["join_code"] == old_code

    def test_untouched_fields_survive(self, api, owner_user: User, team: Team):
        response = api("team_update", as_user=owner_user, json={"team_id": team.id, "rink": "Rink 2"})
        assert response.json()["team"]["season"] == "2025-26"

    def test_member_cannot_update(self, api, member_user: User, team: Team):
        response = api("team_update", as_user=member_user, json={"team_id": team.id, "name": "Mine Now"})
        assert response.status_code == 403

    def test_outsider_cannot_update(self, api, outsider_user: User, team: Team):
        response = api("team_update", as_user=outsider_user, json={"team_id": team.id, "name": "Mine Now"})
        assert response.status_code == 403
        assert response.json()["error"] == "Team access denied."


class TestTeamLogo:
    """Test logo upload and removal."""

    def test_upload_and_replace_logo(self, api, admin_user: User, team: Team, upload_root: str, db: Session):
        response = api(
            "team_logo_upload",
            as_user=admin_user,
            data={"team_id": str(team.id)},
            files={"logo": ("logo.png", PNG_BYTES, "image/png")},
        )
        assert response.status_code == 200
        first_url = response.json()["team"]["logo_url"]
        assert first_url.startswith(f"/uploads/team-{team.id}/logo-")
        first_path = os.path.join(upload_root, first_url.removeprefix("/uploads/"))
        assert os.path.exists(first_path)

        response = api(
            "team_logo_upload",
            as_user=admin_user,
            data={"team_id": str(team.id)},
            files={"logo": ("logo2.png", PNG_BYTES, "image/png")},
        )
        second_url = response.json()["team"]["logo_url"]
        assert second_url != first_url
        assert not os.path.exists(first_path)

    def test_logo_extension_comes_from_content(self, api, client, owner_user: User, team: Team):
        response = api(
            "team_logo_upload",
            as_user=owner_user,
            data={"team_id": str(team.id)},
            files={"logo": ("logo.svg", PNG_BYTES, "image/svg+xml")},
        )
        logo_url = response.json()["team"]["logo_url"]
        assert logo_url.endswith(".png")

        served = client.get(logo_url)
        assert served.status_code == 200
        assert served.content == PNG_BYTES
        assert served.headers["content-type"] == "image/png"
        assert served.headers["x-content-type-options"] == "nosniff"

    def test_svg_logo_rejected(self, api, db: Session, owner_user: User, team: Team, upload_root: str):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg"><script>alert(1)</script></svg>'
        response = api(
            "team_logo_upload",
            as_user=owner_user,
            data={"team_id": str(team.id)},
            files={"logo": ("logo.svg", svg, "image/svg+xml")},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "Logo must be a PNG, JPEG, GIF or WebP image."
        db.refresh(team)
        assert team.logo_path is None
        assert not os.path.exists(os.path.join(upload_root, f"team-{team.id}"))

    def test_logo_must_be_image(self, api, owner_user: User, team: Team):
        response = api(
            "team_logo_upload",
            as_user=owner_user,
            data={"team_id": str(team.id)},
            files={"logo": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 422

    def test_logo_requires_file(self, api, owner_user: User, team: Team):
        response = api("team_logo_upload", as_user=owner_user, data={"team_id": str(team.id)})
        assert response.status_code == 422
        assert response.json()["error"] == "Upload file is required."

    def test_delete_logo(self, api, owner_user: User, team: Team, upload_root: str):
        uploaded = api(
            "team_logo_upload",
            as_user=owner_user,
            data={"team_id": str(team.id)},
            files={"logo": ("logo.png", PNG_BYTES, "image/png")},
        ).json()["team"]["logo_url"]

        response = api("team_logo_delete", as_user=owner_user, json={"team_id": team.id})
        assert response.status_code == 200
        assert response.json()["team"]["logo_url"] is None
        assert not os.path.exists(os.path.join(upload_root, uploaded.removeprefix("/uploads/")))


class TestTeamDeletion:
    """Test owner-confirmed team deletion."""

    def _delete(self, api, user, team, confirm_name="Ice Storm", confirm_word="DELETE"):
        return api(
            "team_delete",
            as_user=user,
            json={"team_id": team.id, "confirm_name": confirm_name, "confirm_word": confirm_word},
        )

    def test_owner_deletes_team_and_everything_attached(
        self, api, owner_user: User, member_user: User, team: Team, db: Session, upload_root: str
    ):
        team_id = team.id
        api(
            "media_upload",
            as_user=member_user,
            data={"team_id": str(team_id)},
            files={"file": ("goal.jpg", image_bytes("JPEG"), "image/jpeg")},
        )
        api("invite_email", as_user=owner_user, json={"team_id": team_id, "email": "new@example.com"})
        assert os.path.isdir(os.path.join(upload_root, f"team-{team_id}"))

        response = self._delete(api, owner_user, team)
        assert response.status_code == 200
        assert response.json()["teams"] == []

        db.expire_all()
        assert db.query(Team).filter(Team.id == team_id).first() is None
        assert db.query(TeamMember).filter(TeamMember.team_id == team_id).count() == 0
        assert db.query(MediaItem).filter(MediaItem.team_id == team_id).count() == 0
        assert db.query(TeamInvite).filter(TeamInvite.team_id == team_id).count() == 0
        assert not os.path.exists(os.path.join(upload_root, f"team-{team_id}"))

    def test_admin_cannot_delete(self, api, admin_user: User, team: Team):
        response = self._delete(api, admin_user, team)
        assert response.status_code == 403

    def test_confirm_word_required(self, api, owner_user: User, team: Team, db: Session):
        response = self._delete(api, owner_user, team, confirm_word="delete")
        assert response.status_code == 422
        assert db.query(Team).filter(Team.id == team.id).first() is not None

    def test_confirm_name_is_exact(self, api, owner_user: User, team: Team, db: Session):
        response = self._delete(api, owner_user, team, confirm_name="ice storm")
        assert response.status_code == 422
        assert response.json()["error"] == "Team name confirmation does not match."

    def test_purge_failure_is_only_logged(self, api, owner_user: User, team: Team, db: Session, monkeypatch):
        monkeypatch.setattr(
            "slapshot.utils.storage.BlobStorage.purge_directory", lambda self, path: False
        )
        response = self._delete(api, owner_user, team)
        assert response.status_code == 200
        db.expire_all()
        assert db.query(Team).count() == 0

    def test_unknown_team_is_forbidden(self, api, owner_user: User):
        """Non-members learn nothing about whether a team exists."""
        response = api(
            "team_delete",
            as_user=owner_user,
            json={"team_id": 9999, "confirm_name": "x", "confirm_word": "DELETE"},
        )
        assert response.status_code == 403


class TestTeamRepositoryConstraints:
    """Uniqueness is enforced by the database as well."""

    def test_duplicate_slug_rejected(self, db: Session, owner_user: User):
        team = TeamService.create_team(db, owner_user, "Ice Storm")
        db.add(Team(name="Other", slug=team.slug, join_code="ABCDEFGH", created_by=owner_user.id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
