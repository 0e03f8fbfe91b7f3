"""
Tests for the membership engine: joining, listing, role changes and removal.
"""
import pytest
from sqlalchemy.orm import Session

from slapshot.core.errors import Forbidden, NotFound, ValidationError
from slapshot.models.team import MembershipStatus, Team, TeamMember, TeamRole
from slapshot.models.user import User
from slapshot.repositories import TeamMemberRepository
from slapshot.services.membership_service import MembershipService


def membership(db: Session, team: Team, user: User) -> TeamMember:
    db.expire_all()
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team.id, TeamMember.user_id == user.id)
        .one()
    )


class TestJoinTeam:
    """Test joining by join code."""

    def test_join_with_code(self, api, outsider_user: User, team: Team, db: Session):
        response = api(
            "team_join", as_user=outsider_user, json={"join_code": f"  {team.join_code.lower()} "}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["joined_team_id"] == team.id
        assert data["teams"][0]["role"] == "member"
        assert data["teams"][0]["member_count"] == 4

        member = membership(db, team, outsider_user)
        assert member.role == TeamRole.member
        assert member.status == MembershipStatus.active

    def test_join_twice_is_idempotent(self, db: Session, outsider_user: User, team: Team):
        MembershipService.join_team(db, outsider_user, team.join_code)
        MembershipService.join_team(db, outsider_user, team.join_code)
        rows = (
            db.query(TeamMember)
            .filter(TeamMember.team_id == team.id, TeamMember.user_id == outsider_user.id)
            .all()
        )
        assert len(rows) == 1
        assert rows[0].status == MembershipStatus.active

    def test_owner_joining_own_team_keeps_owner(self, db: Session, owner_user: User, team: Team):
        MembershipService.join_team(db, owner_user, team.join_code)
        assert membership(db, team, owner_user).role == TeamRole.owner

    def test_short_code_rejected(self, api, outsider_user: User):
        response = api("team_join", as_user=outsider_user, json={"join_code": "ABC12"})
        assert response.status_code == 422
        assert response.json()["error"] == "Valid team join code required."

    def test_unknown_code(self, api, outsider_user: User, team: Team):
        response = api("team_join", as_user=outsider_user, json={"join_code": "QQQQQQQQ"})
        assert response.status_code == 404
        assert response.json()["error"] == "Join code not found."

    def test_rejoin_after_removal_reactivates(
        self, db: Session, owner_user: User, member_user: User, team: Team
    ):
        MembershipService.remove_member(db, team.id, owner_user, member_user.id)
        assert membership(db, team, member_user).status == MembershipStatus.removed

        MembershipService.join_team(db, member_user, team.join_code)
        member = membership(db, team, member_user)
        assert member.status == MembershipStatus.active
        assert member.role == TeamRole.member

    def test_removed_admin_rejoins_as_member(
        self, db: Session, owner_user: User, admin_user: User, team: Team
    ):
        """Removal resets the role, so re-joining never restores admin rights."""
        MembershipService.remove_member(db, team.id, owner_user, admin_user.id)
        MembershipService.join_team(db, admin_user, team.join_code)
        assert membership(db, team, admin_user).role == TeamRole.member


class TestListMembers:
    """Test member listing."""

    def test_members_ordered_by_role_then_name(
        self, api, member_user: User, team: Team, make_user, add_member
    ):
        add_member(team, make_user("zed@example.com", "Zed Admin"), TeamRole.admin)
        add_member(team, make_user("abby@example.com", "abby member"), TeamRole.member)

        response = api("team_members", method="GET", as_user=member_user, params={"team_id": team.id})
        assert response.status_code == 200
        members = response.json()["members"]
        assert [(m["display_name"], m["role"]) for m in members] == [
            ("Olivia Owner", "owner"),
            ("Adam Admin", "admin"),
            ("Zed Admin", "admin"),
            ("abby member", "member"),
            ("Mia Member", "member"),
        ]
        assert members[0]["email"] == "olivia@example.com"
        assert members[0]["joined_at"].endswith("Z")

    def test_removed_members_hidden(self, api, db: Session, owner_user: User, member_user: User, team: Team):
        MembershipService.remove_member(db, team.id, owner_user, member_user.id)
        response = api("team_members", method="GET", as_user=owner_user, params={"team_id": team.id})
        assert "Mia Member" not in [m["display_name"] for m in response.json()["members"]]

    def test_outsider_cannot_list(self, api, outsider_user: User, team: Team):
        response = api("team_members", method="GET", as_user=outsider_user, params={"team_id": team.id})
        assert response.status_code == 403

    def test_removed_member_cannot_list(self, api, db: Session, owner_user: User, member_user: User, team: Team):
        MembershipService.remove_member(db, team.id, owner_user, member_user.id)
        response = api("team_members", method="GET", as_user=member_user, params={"team_id": team.id})
        assert response.status_code == 403


class TestRoleChanges:
    """Role change guards."""

    def _set_role(self, api, actor, team, target, role):
        return api(
            "team_member_role",
            as_user=actor,
            json={"team_id": team.id, "user_id": target.id, "role": role},
        )

    def test_owner_promotes_member(self, api, db: Session, owner_user: User, member_user: User, team: Team):
        response = self._set_role(api, owner_user, team, member_user, "admin")
        assert response.status_code == 200
        assert response.json()["member"]["role"] == "admin"
        assert membership(db, team, member_user).role == TeamRole.admin

    def test_admin_promotes_member(self, api, db: Session, admin_user: User, member_user: User, team: Team):
        response = self._set_role(api, admin_user, team, member_user, "admin")
        assert response.status_code == 200

    def test_owner_demotes_admin(self, api, db: Session, owner_user: User, admin_user: User, team: Team):
        response = self._set_role(api, owner_user, team, admin_user, "member")
        assert response.status_code == 200
        assert membership(db, team, admin_user).role == TeamRole.member

    def test_admin_cannot_touch_admin(
        self, api, db: Session, admin_user: User, member_user: User, team: Team, make_user, add_member
    ):
        other_admin = make_user("ava@example.com", "Ava Admin")
        add_member(team, other_admin, TeamRole.admin)
        response = self._set_role(api, admin_user, team, other_admin, "member")
        assert response.status_code == 403
        assert membership(db, team, other_admin).role == TeamRole.admin

    def test_admin_cannot_change_self(self, api, db: Session, admin_user: User, team: Team):
        response = self._set_role(api, admin_user, team, admin_user, "member")
        assert response.status_code == 403
        assert membership(db, team, admin_user).role == TeamRole.admin

    def test_owner_cannot_change_self(self, api, db: Session, owner_user: User, team: Team):
        response = self._set_role(api, owner_user, team, owner_user, "member")
        assert response.status_code == 403
        assert membership(db, team, owner_user).role == TeamRole.owner

    def test_nobody_changes_owner(self, api, admin_user: User, owner_user: User, team: Team):
        response = self._set_role(api, admin_user, team, owner_user, "member")
        assert response.status_code == 403

    def test_member_cannot_change_roles(self, api, member_user: User, admin_user: User, team: Team):
        response = self._set_role(api, member_user, team, admin_user, "member")
        assert response.status_code == 403

    def test_owner_role_cannot_be_assigned(self, api, owner_user: User, member_user: User, team: Team):
        response = self._set_role(api, owner_user, team, member_user, "owner")
        assert response.status_code == 422

    def test_service_rejects_owner_role(self, db: Session, owner_user: User, member_user: User, team: Team):
        with pytest.raises(ValidationError):
            MembershipService.set_member_role(db, team.id, owner_user, member_user.id, TeamRole.owner)

    def test_target_without_membership(self, db: Session, owner_user: User, outsider_user: User, team: Team):
        with pytest.raises(NotFound):
            MembershipService.set_member_role(db, team.id, owner_user, outsider_user.id, TeamRole.admin)


class TestRemoveMember:
    """Removal guards and effects."""

    def _remove(self, api, actor, team, target):
        return api("team_member_remove", as_user=actor, json={"team_id": team.id, "user_id": target.id})

    def test_admin_removes_member(self, api, db: Session, admin_user: User, member_user: User, team: Team):
        response = self._remove(api, admin_user, team, member_user)
        assert response.status_code == 200
        member = membership(db, team, member_user)
        assert member.status == MembershipStatus.removed
        assert member.role == TeamRole.member

    def test_owner_removes_admin(self, api, db: Session, owner_user: User, admin_user: User, team: Team):
        response = self._remove(api, owner_user, team, admin_user)
        assert response.status_code == 200
        member = membership(db, team, admin_user)
        assert member.status == MembershipStatus.removed
        assert member.role == TeamRole.member

    def test_admin_cannot_remove_self(self, api, admin_user: User, team: Team):
        response = self._remove(api, admin_user, team, admin_user)
        assert response.status_code == 403

    def test_owner_cannot_be_removed(self, db: Session, admin_user: User, owner_user: User, team: Team):
        with pytest.raises(Forbidden):
            MembershipService.remove_member(db, team.id, admin_user, owner_user.id)

    def test_removing_twice_is_not_found(self, api, owner_user: User, member_user: User, team: Team):
        assert self._remove(api, owner_user, team, member_user).status_code == 200
        assert self._remove(api, owner_user, team, member_user).status_code == 404

    def test_team_keeps_single_owner(self, api, db: Session, owner_user: User, admin_user: User, member_user: User, team: Team):
        for actor, target in ((admin_user, member_user), (owner_user, admin_user)):
            api("team_member_role", as_user=actor, json={"team_id": team.id, "user_id": target.id, "role": "owner"})
        self._remove(api, admin_user, team, owner_user)

        db.expire_all()
        assert TeamMemberRepository(db).count_active_owners(team.id) == 1
        owners = (
            db.query(TeamMember)
            .filter(
                TeamMember.team_id == team.id,
                TeamMember.role == TeamRole.owner,
                TeamMember.status == MembershipStatus.active,
            )
            .all()
        )
        assert [o.user_id for o in owners] == [owner_user.id]

