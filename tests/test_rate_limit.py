"""
Tests for per-IP action limits on the single endpoint.
"""
from slapshot.core.rate_limit import ACTION_LIMITS
from slapshot.models.user import User

PASSWORD = "TestPassword123!"


class TestLoginRateLimit:
    """auth_login is limited per client address."""

    def test_login_limited_after_ten_attempts(self, api, owner_user: User):
        for _ in range(10):
            response = api("auth_login", json={"email": owner_user.email, "password": "wrong-password"})
            assert response.status_code == 401

        response = api("auth_login", json={"email": owner_user.email, "password": PASSWORD})
        assert response.status_code == 429
        body = response.json()
        assert body["ok"] is False
        assert "Too many requests" in body["error"]

    def test_other_actions_unaffected(self, api, owner_user: User):
        for _ in range(11):
            api("auth_login", json={"email": owner_user.email, "password": "wrong-password"})
        response = api("session", method="GET", as_user=owner_user)
        assert response.status_code == 200


class TestRegisterRateLimit:
    """auth_register is limited per hour."""

    def test_register_limited_after_ten_attempts(self, api):
        assert ACTION_LIMITS["auth_register"] == "10/hour"
        for i in range(10):
            response = api(
                "auth_register",
                json={"email": f"skater{i}@example.com", "display_name": f"Skater {i}", "password": PASSWORD},
            )
            assert response.status_code == 201

        response = api(
            "auth_register",
            json={"email": "late@example.com", "display_name": "Late Skater", "password": PASSWORD},
        )
        assert response.status_code == 429
