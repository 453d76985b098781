"""Tests for the administration endpoints and the role gates in front of them."""
import pytest

from permauto.models.security_log import SecurityLog, SecurityLogType
from permauto.models.user import User, UserRole
from tests.conftest import create_user, login_as

PROTECTED = [
    ("get", "/auth/me"),
    ("get", "/admin/users"),
    ("put", "/admin/users/some-id"),
    ("delete", "/admin/users/some-id"),
    ("get", "/admin/authorizations"),
    ("get", "/admin/security"),
    ("get", "/admin/dashboard"),
    ("get", "/authorizations"),
    ("post", "/authorizations"),
    ("get", "/authorizations/some-id"),
    ("put", "/authorizations/some-id"),
    ("delete", "/authorizations/some-id"),
]


@pytest.fixture
def admin(client, db, settings):
    user = create_user(db, role=UserRole.ADMIN, name="Admin")
    login_as(client, user, settings)
    return user


class TestAccessGuard:

    @pytest.mark.parametrize("method,path", PROTECTED)
    def test_missing_cookie_is_unauthenticated(self, client, method, path):
        resp = client.request(method, path, json={"role": "admin"})
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    @pytest.mark.parametrize("method,path", [
        ("get", "/admin/users"),
        ("put", "/admin/users/some-id"),
        ("delete", "/admin/users/some-id"),
        ("get", "/admin/authorizations"),
        ("get", "/admin/security"),
        ("get", "/admin/dashboard"),
    ])
    def test_regular_user_is_forbidden(self, client, db, settings, method, path):
        login_as(client, create_user(db, role=UserRole.USER), settings)
        resp = client.request(method, path, json={"role": "admin"})
        assert resp.status_code == 403

    def test_subadmin_cannot_manage_users(self, client, db, settings):
        target = create_user(db)
        login_as(client, create_user(db, role=UserRole.SUBADMIN), settings)
        assert client.get("/admin/users").status_code == 200
        assert client.put(f"/admin/users/{target.id}", json={"role": "admin"}).status_code == 403
        assert client.delete(f"/admin/users/{target.id}").status_code == 403

    def test_security_role_only_sees_logs(self, client, db, settings):
        login_as(client, create_user(db, role=UserRole.SECURITY), settings)
        assert client.get("/admin/security").status_code == 200
        assert client.get("/admin/users").status_code == 403
        assert client.get("/admin/authorizations").status_code == 403

    def test_role_change_applies_to_existing_token(self, client, db, admin):
        assert client.get("/admin/users").status_code == 200

        admin.role = UserRole.USER
        db.commit()

        assert client.get("/admin/users").status_code == 403


class TestUserAdministration:

    def test_list_users_newest_first_without_hash(self, client, db, admin):
        create_user(db, name="Second")
        create_user(db, name="Third")
        resp = client.get("/admin/users")
        assert resp.status_code == 200
        users = resp.json()["users"]
        assert [u["name"] for u in users] == ["Third", "Second", "Admin"]
        for user in users:
            assert "hashedPassword" not in user
            assert "hashed_password" not in user
            assert "createdAt" in user

    def test_change_role(self, client, db, admin):
        target = create_user(db)
        resp = client.put(f"/admin/users/{target.id}", json={"role": "security"})
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "security"

        db.expire_all()
        assert db.get(User, target.id).role == UserRole.SECURITY

    def test_change_role_invalid(self, client, db, admin):
        target = create_user(db)
        resp = client.put(f"/admin/users/{target.id}", json={"role": "superuser"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid role"

    @pytest.mark.parametrize("role", ["user", "subadmin", "admin", "bogus"])
    def test_change_own_role(self, client, admin, role):
        resp = client.put(f"/admin/users/{admin.id}", json={"role": role})
        assert resp.status_code == 400
        assert resp.json()["message"] == "You cannot change your own role"

    def test_change_role_missing_user(self, client, admin):
        resp = client.put("/admin/users/does-not-exist", json={"role": "user"})
        assert resp.status_code == 404

    def test_delete_user_twice(self, client, db, admin):
        target = create_user(db)
        resp = client.delete(f"/admin/users/{target.id}")
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        resp = client.delete(f"/admin/users/{target.id}")
        assert resp.status_code == 404

    def test_delete_self(self, client, db, admin):
        resp = client.delete(f"/admin/users/{admin.id}")
        assert resp.status_code == 400
        assert resp.json()["message"] == "You cannot delete your own account"
        db.expire_all()
        assert db.get(User, admin.id) is not None


class TestOversightListings:

    def test_admin_authorizations(self, client, db, settings, admin):
        subadmin = create_user(db, role=UserRole.SUBADMIN)
        login_as(client, subadmin, settings)
        for company in ("Alfa SAC", "Beta SAC"):
            client.post("/authorizations", json={
                "companyName": company,
                "ruc": "20123456789",
                "reason": "Delivery",
                "userId": "visitor-1",
                "startDate": "2025-01-01T08:00:00",
                "endDate": "2025-01-01T18:00:00",
            })

        login_as(client, admin, settings)
        resp = client.get("/admin/authorizations")
        assert resp.status_code == 200
        assert [a["companyName"] for a in resp.json()["authorizations"]] == ["Beta SAC", "Alfa SAC"]

    def test_security_logs_newest_first(self, client, db, admin):
        from datetime import datetime
        db.add_all([
            SecurityLog(type=SecurityLogType.entry, user_id="v1", timestamp=datetime(2025, 1, 1, 8, 0)),
            SecurityLog(type=SecurityLogType.exit, user_id="v1", timestamp=datetime(2025, 1, 1, 17, 0),
                        location="Gate 2"),
        ])
        db.commit()

        resp = client.get("/admin/security")
        assert resp.status_code == 200
        logs = resp.json()["logs"]
        assert [log["type"] for log in logs] == ["exit", "entry"]
        assert logs[0]["location"] == "Gate 2"
        assert logs[0]["userId"] == "v1"


class TestErrors:

    def test_unknown_route_uses_envelope(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
