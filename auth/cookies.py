"""
auth/cookies.py -- Session cookie transport.

Two cookie policies exist, one per identity universe:

  Admin panel (wojp_admin_session):
    HttpOnly, SameSite=Lax, Path=/, Secure iff production (or SECURE_COOKIES).
    Panel and API are served from the same site, so Lax is sufficient and
    still blocks cross-site POSTs.

  End-user session (app_session_id):
    Secure follows the request's effective protocol (direct scheme or the
    first X-Forwarded-Proto hop from the reverse proxy). SameSite=None is only
    used together with Secure -- browsers reject SameSite=None without it --
    so plaintext requests fall back to Lax. Non-production deployments may
    force Secure off with INSECURE_DEV_COOKIES for http://localhost.

Deletion idiom: write the cookie with an empty value and max_age=-1.

Layer rule: no imports from api/, audit/, or content/.
"""

from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import Request, cookie_parser
from starlette.responses import Response

from core.config import get_settings

ADMIN_COOKIE_NAME = "wojp_admin_session"
USER_COOKIE_NAME = "app_session_id"

CLEAR_MAX_AGE = -1


@dataclass(frozen=True)
class CookieOptions:
    httponly: bool = True
    secure: bool = False
    samesite: str = "lax"  # "lax" | "none" | "strict"
    path: str = "/"


def is_secure_request(request: Request) -> bool:
    """Return True when the client reached us over HTTPS.

    Behind a proxy the socket scheme is http; the proxy reports the original
    scheme in X-Forwarded-Proto (possibly a comma-separated chain, first hop
    wins).
    """
    if request.url.scheme == "https":
        return True
    forwarded = request.headers.get("x-forwarded-proto", "")
    first_hop = forwarded.split(",")[0].strip().lower()
    return first_hop == "https"


def session_cookie_options(request: Request) -> CookieOptions:
    """Cookie attributes for the end-user session, negotiated per request."""
    settings = get_settings()
    secure = is_secure_request(request)
    if not settings.is_production and settings.insecure_dev_cookies:
        secure = False
    return CookieOptions(httponly=True, secure=secure, samesite="none" if secure else "lax", path="/")


def admin_cookie_options() -> CookieOptions:
    """Cookie attributes for the admin panel session."""
    settings = get_settings()
    return CookieOptions(
        httponly=True,
        secure=settings.is_production or settings.secure_cookies,
        samesite="lax",
        path="/",
    )


def write_cookie(response: Response, name: str, value: str, options: CookieOptions, max_age: int) -> None:
    """Emit one Set-Cookie header on the response.

    max_age=CLEAR_MAX_AGE (-1) expires the cookie immediately (logout).
    """
    response.set_cookie(
        name,
        value=value,
        max_age=max_age,
        path=options.path,
        secure=options.secure,
        httponly=options.httponly,
        samesite=options.samesite,
    )


def clear_cookie(response: Response, name: str, options: CookieOptions) -> None:
    write_cookie(response, name, "", options, CLEAR_MAX_AGE)


def read_cookie(cookie_header: str | None, name: str) -> str | None:
    """Parse a raw Cookie header and return the value for name.

    An absent or empty header yields None, never an error.
    """
    if not cookie_header:
        return None
    value = cookie_parser(cookie_header).get(name)
    return value or None
