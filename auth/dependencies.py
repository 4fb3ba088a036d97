"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two identity universes, each with its own cookie and token type:

  Admin panel:  cookie wojp_admin_session, token type "admin", admins table.
  End users:    cookie app_session_id,     token type "user",  users table.

Resolution per request:
  cookie present -> token verifies -> row exists -> (admins) row is active
Any failure collapses to "no identity". Protected dependencies then raise a
uniform 401 UNAUTHORIZED that never says which step failed.

The row is re-loaded on every request, so deactivating an admin revokes all
outstanding tokens immediately without a blacklist. Dependencies never write
to storage. Storage outages propagate as StorageError and become a 500.

try_get_current_admin() / try_get_current_user() are the soft variants.
get_current_admin() / get_current_user() raise 401.
require_super_admin() / require_user_admin() additionally raise 403.

Layer rule: no imports from audit/ or content/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.cookies import ADMIN_COOKIE_NAME, USER_COOKIE_NAME, read_cookie
from auth.models import Admin, User
from auth.tokens import decode_admin_token, decode_user_token


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "UNAUTHORIZED", "message": "Authentication required."},
    )


def try_get_current_admin(request: Request) -> Admin | None:
    """Resolve the admin behind the wojp_admin_session cookie, or None."""
    token = read_cookie(request.headers.get("cookie"), ADMIN_COOKIE_NAME)
    claims = decode_admin_token(token)
    if claims is None:
        return None
    admin = request.app.state.admin_store.find_admin_by_id(claims.subject_id)
    if admin is None or not admin.is_active:
        return None
    return admin


def get_current_admin(request: Request) -> Admin:
    """Require an authenticated admin. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.post("/news")
        def route(admin: Admin = Depends(get_current_admin)): ...
    """
    admin = try_get_current_admin(request)
    if admin is None:
        raise _unauthorized()
    return admin


def require_super_admin(request: Request) -> Admin:
    """Require an admin with role super_admin. 401 if unauthenticated, 403 otherwise."""
    admin = get_current_admin(request)
    if admin.role != "super_admin":
        raise HTTPException(
            status_code=403,
            detail={"code": "FORBIDDEN", "message": "Super admin access required."},
        )
    return admin


def try_get_current_user(request: Request) -> User | None:
    """Resolve the end user behind the app_session_id cookie, or None.

    An admin panel token presented in this cookie fails the type check and
    resolves to None.
    """
    token = read_cookie(request.headers.get("cookie"), USER_COOKIE_NAME)
    claims = decode_user_token(token)
    if claims is None:
        return None
    return request.app.state.user_store.get_by_id(claims.subject_id)


def get_current_user(request: Request) -> User:
    """Require an authenticated end user. Raises HTTP 401 otherwise."""
    user = try_get_current_user(request)
    if user is None:
        raise _unauthorized()
    return user


def require_user_admin(request: Request) -> User:
    """Require an end user with role admin. 401 if unauthenticated, 403 otherwise."""
    user = get_current_user(request)
    if user.role != "admin":
        raise HTTPException(
            status_code=403,
            detail={"code": "FORBIDDEN", "message": "Admin access required."},
        )
    return user
