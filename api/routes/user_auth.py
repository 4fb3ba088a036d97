"""
api/routes/user_auth.py -- End-user OAuth login and session endpoints.

Routes:
  GET  /api/oauth/providers            -- enabled providers (public)
  GET  /api/oauth/login/{provider}     -- redirect to the provider
  GET  /api/oauth/callback/{provider}  -- code exchange; sets app_session_id
  GET  /api/auth/me                    -- current end user or null
  POST /api/auth/logout                -- clears app_session_id
  GET  /api/auth/users                 -- all end users (role admin only)

End users are provisioned on first login; there is no pre-created account
step. The user whose verified email equals OWNER_EMAIL is given role admin.

Cookie attributes for app_session_id are negotiated per request by
session_cookie_options(): Secure follows the effective protocol (proxy aware),
SameSite=None only when Secure.
"""

from __future__ import annotations

import logging

from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.models import OAuthProviderInfo, SuccessResponse, UserResponse
from auth.cookies import USER_COOKIE_NAME, clear_cookie, session_cookie_options, write_cookie
from auth.dependencies import require_user_admin, try_get_current_user
from auth.models import User
from auth.oauth import get_enabled_providers, get_oauth_profile
from auth.store import UserStore
from auth.tokens import create_user_token
from core.config import get_settings

logger = logging.getLogger("wojp.api.user_auth")

router = APIRouter()

_FAILURE_REDIRECT = "/login?error=oauth_failed"


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        open_id=user.open_id,
        name=user.name,
        email=user.email,
        login_method=user.login_method,
        role=user.role,
        last_signed_in=user.last_signed_in,
    )


# ---------------------------------------------------------------------------
# OAuth flow
# ---------------------------------------------------------------------------


@router.get("/oauth/providers", response_model=list[OAuthProviderInfo])
async def list_providers() -> list[OAuthProviderInfo]:
    """Return the configured providers. Empty when no credentials are set."""
    return [OAuthProviderInfo(**p) for p in get_enabled_providers()]


@router.get("/oauth/login/{provider}")
async def oauth_login(request: Request, provider: str) -> RedirectResponse:
    """Redirect the browser to the provider's authorization page.

    The provider name is checked against the enabled list so a crafted name
    cannot reach an unregistered client.
    """
    enabled = {p["name"] for p in get_enabled_providers()}
    if provider not in enabled:
        return RedirectResponse(_FAILURE_REDIRECT, status_code=302)

    client = request.app.state.oauth.create_client(provider)
    redirect_uri = str(request.url_for("oauth_callback", provider=provider))
    return await client.authorize_redirect(request, redirect_uri)


@router.get("/oauth/callback/{provider}", name="oauth_callback")
async def oauth_callback(request: Request, provider: str) -> RedirectResponse:
    """Exchange the code, upsert the user, set the session cookie, redirect home.

    Authlib verifies the state parameter against the Starlette session.
    Unverified emails and token exchange failures redirect with an error.
    """
    enabled = {p["name"] for p in get_enabled_providers()}
    if provider not in enabled:
        return RedirectResponse(_FAILURE_REDIRECT, status_code=302)

    client = request.app.state.oauth.create_client(provider)
    try:
        token = await client.authorize_access_token(request)
    except OAuthError:
        logger.exception("OAuth token exchange failed for provider %r", provider)
        return RedirectResponse(_FAILURE_REDIRECT, status_code=302)

    try:
        profile = await get_oauth_profile(client, provider, token)
    except ValueError:
        logger.warning("OAuth login rejected: unverified or missing email from %r", provider)
        return RedirectResponse(_FAILURE_REDIRECT, status_code=302)

    settings = get_settings()
    is_owner = bool(settings.owner_email) and profile.email.lower() == settings.owner_email.lower()

    user_store: UserStore = request.app.state.user_store
    user_id = user_store.upsert_user(
        User(
            open_id=profile.open_id,
            name=profile.name,
            email=profile.email,
            login_method=provider,
            role="admin" if is_owner else "user",
        )
    )

    resp = RedirectResponse("/", status_code=302)
    write_cookie(
        resp,
        USER_COOKIE_NAME,
        create_user_token(user_id, profile.email),
        session_cookie_options(request),
        settings.user_session_ttl_seconds,
    )
    resp.headers["Cache-Control"] = "no-store"
    logger.info("End-user login id=%s provider=%s", user_id, provider)
    return resp


# ---------------------------------------------------------------------------
# Session endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserResponse | None)
def me(user: User | None = Depends(try_get_current_user)) -> UserResponse | None:
    return _to_response(user) if user is not None else None


@router.post("/auth/logout", response_model=SuccessResponse)
def logout(request: Request) -> JSONResponse:
    resp = JSONResponse(content=SuccessResponse().model_dump(by_alias=True))
    clear_cookie(resp, USER_COOKIE_NAME, session_cookie_options(request))
    return resp


@router.get("/auth/users", response_model=list[UserResponse])
def list_users(request: Request, user: User = Depends(require_user_admin)) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [_to_response(u) for u in user_store.list_users()]
