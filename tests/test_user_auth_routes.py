"""
tests/test_user_auth_routes.py -- End-user OAuth callback and session tests.

The Authlib client is mocked: the callback receives a canned token and the
profile extractor is patched, so no provider is contacted.

Covers:
  - callback upserts the user and sets app_session_id
  - OWNER_EMAIL is provisioned with role admin; others get role user
  - /api/auth/users is role-gated (403 for plain users)
  - unverified email and unknown provider redirect with an error
  - an admin panel token in app_session_id is not an end-user session
  - logout clears app_session_id
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.routes import user_auth
from auth.oauth import OAuthProfile
from auth.tokens import create_admin_token
from core.config import Settings

OWNER = "owner@example.com"


@pytest.fixture
def oauth_client(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """client with a fake 'github' provider enabled and OWNER_EMAIL configured."""
    monkeypatch.setattr(user_auth, "get_enabled_providers", lambda: [{"name": "github", "label": "GitHub"}])
    settings = Settings(jwt_secret="j" * 32, debug=True, owner_email=OWNER)
    monkeypatch.setattr(user_auth, "get_settings", lambda: settings)

    provider = client.app.state.oauth.create_client.return_value
    provider.authorize_access_token = AsyncMock(return_value={"access_token": "canned"})
    return client


def _sign_in(client: TestClient, monkeypatch: pytest.MonkeyPatch, email: str, subject: str = "1"):
    async def fake_profile(oauth_client, provider, token):
        return OAuthProfile(provider=provider, subject=subject, email=email, name="Someone")

    monkeypatch.setattr(user_auth, "get_oauth_profile", fake_profile)
    return client.get("/api/oauth/callback/github", follow_redirects=False)


def test_callback_sets_session_cookie(oauth_client: TestClient, monkeypatch, stores) -> None:
    resp = _sign_in(oauth_client, monkeypatch, "someone@example.com")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/"
    cookie = resp.headers["set-cookie"].lower()
    assert cookie.startswith("app_session_id=")
    assert "httponly" in cookie
    assert "max-age=31536000" in cookie

    me = oauth_client.get("/api/auth/me").json()
    assert me["openId"] == "github:1"
    assert me["email"] == "someone@example.com"
    assert me["role"] == "user"
    assert me["loginMethod"] == "github"


def test_owner_becomes_admin_and_can_list_users(oauth_client: TestClient, monkeypatch) -> None:
    _sign_in(oauth_client, monkeypatch, OWNER, subject="42")
    assert oauth_client.get("/api/auth/me").json()["role"] == "admin"

    resp = oauth_client.get("/api/auth/users")
    assert resp.status_code == 200
    assert [u["openId"] for u in resp.json()] == ["github:42"]


def test_plain_user_cannot_list_users(oauth_client: TestClient, monkeypatch) -> None:
    _sign_in(oauth_client, monkeypatch, "someone@example.com")
    resp = oauth_client.get("/api/auth/users")
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"


def test_users_without_session_is_401(client: TestClient) -> None:
    assert client.get("/api/auth/users").status_code == 401


def test_unverified_email_redirects_with_error(oauth_client: TestClient, monkeypatch, stores) -> None:
    async def unverified(oauth_client, provider, token):
        raise ValueError("github OAuth: email is not verified.")

    monkeypatch.setattr(user_auth, "get_oauth_profile", unverified)
    resp = oauth_client.get("/api/oauth/callback/github", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?error=oauth_failed"
    assert "set-cookie" not in resp.headers
    assert stores.user.list_users() == []


def test_unknown_provider_redirects_with_error(oauth_client: TestClient) -> None:
    resp = oauth_client.get("/api/oauth/login/myspace", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?error=oauth_failed"


def test_admin_token_is_not_an_end_user_session(client: TestClient, stores) -> None:
    client.cookies.set("app_session_id", create_admin_token(stores.admin_id, "admin@example.com"))
    assert client.get("/api/auth/me").json() is None


def test_logout_clears_cookie(oauth_client: TestClient, monkeypatch) -> None:
    _sign_in(oauth_client, monkeypatch, "someone@example.com")
    resp = oauth_client.post("/api/auth/logout")
    assert resp.status_code == 200
    cleared = resp.headers["set-cookie"].lower()
    assert cleared.startswith("app_session_id=")
    assert "max-age=-1" in cleared
    assert oauth_client.get("/api/auth/me").json() is None


def test_providers_listing(oauth_client: TestClient) -> None:
    assert oauth_client.get("/api/oauth/providers").json() == [{"name": "github", "label": "GitHub"}]
