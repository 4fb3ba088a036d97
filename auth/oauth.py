"""
auth/oauth.py -- Authlib OAuth/OIDC provider configuration for end-user login.

Only providers with both client ID and secret configured get registered. The
public login flow (api/routes/user_auth.py) validates the requested provider
against get_enabled_providers() before redirecting.

Security notes:
  Email verification is mandatory. get_oauth_profile() raises ValueError if
  the provider does not confirm the email is verified.

  The OAuth state parameter (CSRF protection) is handled by authlib via
  Starlette SessionMiddleware between the redirect and the callback.

Supported providers:
  github -- Authorization code flow; static endpoints.
  google -- Authorization code flow; OIDC discovery.
  oidc   -- Generic OIDC discovery (Okta, Azure AD, Keycloak, Authentik, etc.)

Layer rule: no imports from api/, audit/, or content/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from authlib.integrations.starlette_client import OAuth

from core.config import Settings, get_settings

logger = logging.getLogger("wojp.auth.oauth")


@dataclass(frozen=True)
class OAuthProfile:
    """Normalized identity returned by every provider."""

    provider: str
    subject: str
    email: str
    name: str | None = None

    @property
    def open_id(self) -> str:
        return f"{self.provider}:{self.subject}"


def build_oauth(cfg: Settings | None = None) -> OAuth:
    """Return an Authlib registry with every configured provider registered."""
    cfg = cfg or get_settings()
    oauth = OAuth()

    if cfg.github_client_id and cfg.github_client_secret:
        oauth.register(
            name="github",
            client_id=cfg.github_client_id,
            client_secret=cfg.github_client_secret,
            access_token_url="https://github.com/login/oauth/access_token",  # noqa: S106 -- URL, not a password
            authorize_url="https://github.com/login/oauth/authorize",
            api_base_url="https://api.github.com/",
            client_kwargs={"scope": "read:user user:email"},
        )
        logger.info("GitHub OAuth provider registered")

    if cfg.google_client_id and cfg.google_client_secret:
        oauth.register(
            name="google",
            client_id=cfg.google_client_id,
            client_secret=cfg.google_client_secret,
            server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
            client_kwargs={"scope": "openid email profile"},
        )
        logger.info("Google OAuth provider registered")

    if cfg.oidc_client_id and cfg.oidc_client_secret and cfg.oidc_discovery_url:
        oauth.register(
            name="oidc",
            client_id=cfg.oidc_client_id,
            client_secret=cfg.oidc_client_secret,
            server_metadata_url=cfg.oidc_discovery_url,
            client_kwargs={"scope": "openid email profile"},
        )
        logger.info("Generic OIDC provider registered (display name: %s)", cfg.oidc_display_name)

    return oauth


def get_enabled_providers() -> list[dict]:
    """Return {"name", "label"} for every provider with credentials configured."""
    cfg = get_settings()
    providers: list[dict] = []
    if cfg.github_client_id and cfg.github_client_secret:
        providers.append({"name": "github", "label": "GitHub"})
    if cfg.google_client_id and cfg.google_client_secret:
        providers.append({"name": "google", "label": "Google"})
    if cfg.oidc_client_id and cfg.oidc_client_secret and cfg.oidc_discovery_url:
        providers.append({"name": "oidc", "label": cfg.oidc_display_name})
    return providers


# ---------------------------------------------------------------------------
# Profile extraction -- provider-specific normalization
# ---------------------------------------------------------------------------


async def get_oauth_profile(client, provider: str, token: dict) -> OAuthProfile:
    """Extract a verified OAuthProfile from a provider token response.

    Raises:
        ValueError: If a verified email cannot be confirmed or the provider is unknown.
    """
    if provider == "github":
        return await _get_github_profile(client, token)
    if provider in ("google", "oidc"):
        return _get_oidc_profile(token, provider)
    raise ValueError(f"Unknown OAuth provider: {provider!r}")


async def _get_github_profile(client, token: dict) -> OAuthProfile:
    """GitHub needs two calls: /user for the numeric ID, /user/emails for the
    primary verified address. Only an entry with primary=true AND verified=true
    is accepted.
    """
    resp = await client.get("user", token=token)
    resp.raise_for_status()
    profile = resp.json()

    emails_resp = await client.get("user/emails", token=token)
    emails_resp.raise_for_status()

    email: str | None = None
    for entry in emails_resp.json():
        if entry.get("primary") and entry.get("verified"):
            email = entry["email"]
            break
    if not email:
        raise ValueError("GitHub OAuth: no primary verified email found.")

    return OAuthProfile(
        provider="github",
        subject=str(profile["id"]),
        email=email,
        name=profile.get("name") or profile.get("login"),
    )


def _get_oidc_profile(token: dict, provider: str) -> OAuthProfile:
    """Google and generic OIDC return userinfo claims with the id_token.

    A missing email_verified claim is treated as unverified.
    """
    userinfo = token.get("userinfo")
    if not userinfo:
        raise ValueError(f"{provider} OAuth: no userinfo in token response")
    if not userinfo.get("email_verified", False):
        raise ValueError(f"{provider} OAuth: email is not verified.")

    email = userinfo.get("email")
    subject = userinfo.get("sub")
    if not email or not subject:
        raise ValueError(f"{provider} OAuth: missing email or sub claim in userinfo")

    return OAuthProfile(provider=provider, subject=str(subject), email=email, name=userinfo.get("name"))
