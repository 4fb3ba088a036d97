"""
tests/test_admin_auth_routes.py -- Integration tests for /api/admin/auth/*.

Runs through the real ASGI stack (cookie parsing, dependencies, exception
handlers) against isolated in-memory stores.

Covers:
  - login sets wojp_admin_session with the expected attributes
  - wrong password / unknown email: 401, no cookie, no audit entry
  - login -> me -> logout -> me round trip
  - deactivation revokes an outstanding session immediately
  - storage outage during login: 500 with the DATABASE_URL hint, no cookie
  - updatePassword: mismatch is 400 and leaves the hash unchanged
  - updateEmail: wrong password 401, duplicate 400, success audited
  - createAdmin: duplicate email 400, role gating, bootstrap mode
  - login rate limit: 429 TOO_MANY_REQUESTS once LOGIN_RATE_LIMIT is spent
  - validation errors never echo submitted passwords
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from api.limiter import limiter
from auth.tokens import verify_password
from core.errors import StorageUnavailableError


def _set_cookie_headers(resp) -> list[str]:
    return resp.headers.get_list("set-cookie")


class TestLogin:
    def test_login_success_sets_cookie(self, client: TestClient, login, stores) -> None:
        resp = login()
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["admin"] == {
            "id": stores.admin_id,
            "email": "admin@example.com",
            "name": "Site Admin",
            "role": "admin",
        }
        assert resp.headers["cache-control"] == "no-store"

        headers = _set_cookie_headers(resp)
        assert len(headers) == 1
        cookie = headers[0].lower()
        assert cookie.startswith("wojp_admin_session=")
        assert "httponly" in cookie
        assert "max-age=604800" in cookie
        assert "samesite=lax" in cookie
        assert "path=/" in cookie

    def test_login_updates_last_signed_in(self, client: TestClient, login, stores) -> None:
        assert stores.admin.find_admin_by_id(stores.admin_id).last_signed_in is None
        login()
        assert stores.admin.find_admin_by_id(stores.admin_id).last_signed_in is not None

    def test_wrong_password_is_401_without_cookie_or_audit(self, client: TestClient, login, stores) -> None:
        resp = login(password="wrong")
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "UNAUTHORIZED", "message": "Invalid email or password."}}
        assert _set_cookie_headers(resp) == []
        assert stores.audit.list() == []

    def test_unknown_email_matches_wrong_password(self, client: TestClient, login) -> None:
        wrong_pw = login(password="wrong")
        unknown = login(email="ghost@example.com", password="secret123")
        assert unknown.status_code == wrong_pw.status_code == 401
        assert unknown.json() == wrong_pw.json()

    def test_inactive_admin_cannot_login(self, client: TestClient, login, stores) -> None:
        stores.admin.set_admin_active(stores.admin_id, False)
        assert login().status_code == 401

    def test_invalid_email_is_bad_request(self, client: TestClient, login) -> None:
        resp = login(email="not-an-email")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "BAD_REQUEST"

    def test_storage_outage_is_500_with_hint(self, client: TestClient, login, stores, monkeypatch) -> None:
        def unavailable(email):
            raise StorageUnavailableError("find admin by email: database unavailable")

        monkeypatch.setattr(stores.admin, "find_admin_by_email", unavailable)
        resp = login()
        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "INTERNAL_SERVER_ERROR"
        assert "DATABASE_URL" in error["message"]
        assert _set_cookie_headers(resp) == []


class TestSessionRoundTrip:
    def test_me_without_cookie_is_null(self, client: TestClient) -> None:
        resp = client.get("/api/admin/auth/me")
        assert resp.status_code == 200
        assert resp.json() is None

    def test_login_me_logout_me(self, client: TestClient, login, stores) -> None:
        login()
        me = client.get("/api/admin/auth/me")
        assert me.json()["id"] == stores.admin_id

        logout = client.post("/api/admin/auth/logout")
        assert logout.status_code == 200
        assert logout.json() == {"success": True}
        cleared = _set_cookie_headers(logout)[0].lower()
        assert cleared.startswith("wojp_admin_session=")
        assert "max-age=-1" in cleared

        assert client.get("/api/admin/auth/me").json() is None

    def test_forged_cookie_is_null(self, client: TestClient) -> None:
        client.cookies.set("wojp_admin_session", "not.a.token")
        assert client.get("/api/admin/auth/me").json() is None

    def test_deactivation_revokes_session(self, client: TestClient, login, stores) -> None:
        login()
        assert client.get("/api/admin/news").status_code == 200

        stores.admin.set_admin_active(stores.admin_id, False)

        resp = client.get("/api/admin/news")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"
        assert client.get("/api/admin/auth/me").json() is None

    def test_protected_route_without_session(self, client: TestClient) -> None:
        resp = client.post("/api/admin/news", json={"title": "t", "slug": "t", "content": "c"})
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "UNAUTHORIZED", "message": "Authentication required."}}


class TestUpdatePassword:
    def test_mismatch_is_bad_request_and_hash_unchanged(self, client: TestClient, login, stores) -> None:
        login()
        before = stores.admin.find_admin_by_id(stores.admin_id).password_hash
        resp = client.post(
            "/api/admin/auth/update-password",
            json={"currentPassword": "secret123", "newPassword": "newpass1", "confirmPassword": "newpass2"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "BAD_REQUEST"
        assert stores.admin.find_admin_by_id(stores.admin_id).password_hash == before
        assert stores.audit.list() == []

    def test_too_short_is_bad_request(self, client: TestClient, login) -> None:
        login()
        resp = client.post(
            "/api/admin/auth/update-password",
            json={"currentPassword": "secret123", "newPassword": "short", "confirmPassword": "short"},
        )
        assert resp.status_code == 400

    def test_wrong_current_password_is_401(self, client: TestClient, login) -> None:
        login()
        resp = client.post(
            "/api/admin/auth/update-password",
            json={"currentPassword": "wrong", "newPassword": "newpass12", "confirmPassword": "newpass12"},
        )
        assert resp.status_code == 401

    def test_success_changes_hash_and_is_audited(self, client: TestClient, login, stores) -> None:
        login()
        resp = client.post(
            "/api/admin/auth/update-password",
            json={"currentPassword": "secret123", "newPassword": "newpass12", "confirmPassword": "newpass12"},
        )
        assert resp.status_code == 200
        admin = stores.admin.find_admin_by_id(stores.admin_id)
        assert verify_password("newpass12", admin.password_hash)

        entries = stores.audit.list()
        assert [(e.action, e.resource_type, e.resource_id) for e in entries] == [
            ("update_password", "admin", stores.admin_id)
        ]


class TestUpdateEmail:
    def test_success(self, client: TestClient, login, stores) -> None:
        login()
        resp = client.post(
            "/api/admin/auth/update-email",
            json={"newEmail": "renamed@example.com", "currentPassword": "secret123"},
        )
        assert resp.status_code == 200
        assert stores.admin.find_admin_by_id(stores.admin_id).email == "renamed@example.com"
        assert stores.audit.list()[0].action == "update_email"

    def test_email_of_another_admin_is_bad_request(self, client: TestClient, login, stores) -> None:
        login()
        resp = client.post(
            "/api/admin/auth/update-email",
            json={"newEmail": "root@example.com", "currentPassword": "secret123"},
        )
        assert resp.status_code == 400
        assert stores.admin.find_admin_by_id(stores.admin_id).email == "admin@example.com"

    def test_wrong_password_is_401(self, client: TestClient, login) -> None:
        login()
        resp = client.post(
            "/api/admin/auth/update-email",
            json={"newEmail": "renamed@example.com", "currentPassword": "wrong"},
        )
        assert resp.status_code == 401


class TestCreateAdmin:
    def _payload(self, email: str = "new@example.com", role: str = "admin") -> dict:
        return {"email": email, "password": "secret123", "name": "New", "role": role}

    def test_super_admin_creates_admin(self, client: TestClient, login, stores) -> None:
        login("root@example.com", "rootpass123")
        resp = client.post("/api/admin/auth/create-admin", json=self._payload())
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert stores.admin.find_admin_by_email("new@example.com").role == "admin"
        assert stores.audit.list()[0].action == "create_admin"

    def test_duplicate_email_is_bad_request(self, client: TestClient, login, stores) -> None:
        login("root@example.com", "rootpass123")
        resp = client.post("/api/admin/auth/create-admin", json=self._payload(email="admin@example.com"))
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "BAD_REQUEST"
        assert "already exists" in error["message"]
        assert stores.admin.count_admins() == 2

    def test_regular_admin_is_forbidden(self, client: TestClient, login) -> None:
        login()
        resp = client.post("/api/admin/auth/create-admin", json=self._payload())
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    def test_anonymous_is_unauthorized(self, client: TestClient) -> None:
        resp = client.post("/api/admin/auth/create-admin", json=self._payload())
        assert resp.status_code == 401


def test_bootstrap_allows_first_admin_without_session(bare_client: TestClient, bare_stores) -> None:
    """With an empty admins table, create-admin needs no session; afterwards it does."""
    resp = bare_client.post(
        "/api/admin/auth/create-admin",
        json={"email": "first@example.com", "password": "secret123", "name": "First", "role": "super_admin"},
    )
    assert resp.status_code == 200
    assert bare_stores.admin.find_admin_by_email("first@example.com").role == "super_admin"
    # No actor existed, so nothing is audited.
    assert bare_stores.audit.list() == []

    second = bare_client.post(
        "/api/admin/auth/create-admin",
        json={"email": "second@example.com", "password": "secret123", "name": "Second"},
    )
    assert second.status_code == 401

    anonymous_repeat = bare_client.post(
        "/api/admin/auth/create-admin",
        json={"email": "first@example.com", "password": "secret123", "name": "Again"},
    )
    assert anonymous_repeat.status_code == 401
    assert anonymous_repeat.json()["error"]["code"] == "UNAUTHORIZED"
    assert bare_stores.admin.count_admins() == 1


def test_login_is_rate_limited(client: TestClient, login, monkeypatch) -> None:
    """The eleventh attempt inside a minute is refused with 429 (limit 10/minute)."""
    limiter.reset()
    monkeypatch.setattr(limiter, "enabled", True)
    codes = [login(password="wrong-password").status_code for _ in range(12)]
    assert codes == [401] * 10 + [429, 429]

    resp = login()
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "TOO_MANY_REQUESTS"
    assert "retry-after" in resp.headers
    assert "set-cookie" not in resp.headers
    limiter.reset()


def test_validation_error_does_not_echo_passwords(client: TestClient, login) -> None:
    login()
    resp = client.post(
        "/api/admin/auth/update-password",
        json={"currentPassword": "secret123", "newPassword": "hunter2hunter2", "confirmPassword": "hunter3hunter3"},
    )
    assert resp.status_code == 400
    body = resp.text
    assert "hunter2hunter2" not in body
    assert "hunter3hunter3" not in body
    assert "secret123" not in body
