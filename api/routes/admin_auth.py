"""
api/routes/admin_auth.py -- Admin panel authentication and account endpoints.

Routes:
  POST /api/admin/auth/login            -- email/password login; sets admin cookie
  POST /api/admin/auth/logout           -- clears admin cookie
  GET  /api/admin/auth/me               -- current admin summary or null
  POST /api/admin/auth/update-email     -- change own email (password re-check)
  POST /api/admin/auth/update-password  -- change own password (password re-check)
  POST /api/admin/auth/create-admin     -- bootstrap first admin / super_admin only

Security:
  POST /login is rate-limited per IP (LOGIN_RATE_LIMIT).
  authenticate_admin() provides timing equalization -- use it, never inline.
  Login responses carry Cache-Control: no-store.
  Wrong email, wrong password, and inactive account share one 401 body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    AdminLoginRequest,
    AdminSummary,
    CreateAdminRequest,
    LoginResponse,
    SuccessResponse,
    UpdateEmailRequest,
    UpdatePasswordRequest,
)
from audit.recorder import AuditRecorder
from auth.cookies import ADMIN_COOKIE_NAME, admin_cookie_options, clear_cookie, write_cookie
from auth.dependencies import get_current_admin, try_get_current_admin
from auth.models import Admin
from auth.store import AdminStore
from auth.tokens import authenticate_admin, create_admin_token, hash_password, verify_password
from core.config import get_settings
from core.errors import ConstraintViolationError

logger = logging.getLogger("wojp.api.admin_auth")

# Auth policy:
# - POST /login, /logout, GET /me:  public
# - POST /update-email, /update-password: requires admin (get_current_admin)
# - POST /create-admin: public while no admin exists, then super_admin only
router = APIRouter(prefix="/admin/auth")

_LOGIN_RATE_LIMIT = get_settings().login_rate_limit


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "BAD_REQUEST", "message": message})


def _wrong_password() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "UNAUTHORIZED", "message": "Current password is incorrect."},
    )


# ---------------------------------------------------------------------------
# Session endpoints
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
@limiter.limit(_LOGIN_RATE_LIMIT)
def login(request: Request, body: AdminLoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the admin session cookie.

    Returns the same generic error for unknown email, wrong password, and a
    deactivated account. Storage failures propagate to the StorageError
    handler (500) and never set a cookie.
    """
    store: AdminStore = request.app.state.admin_store
    admin = authenticate_admin(store, body.email, body.password)
    if admin is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "UNAUTHORIZED", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    store.update_admin_last_signed_in(admin.id)
    token = create_admin_token(admin.id, admin.email)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(admin=AdminSummary(**admin.summary())).model_dump(by_alias=True),
    )
    write_cookie(resp, ADMIN_COOKIE_NAME, token, admin_cookie_options(), get_settings().admin_session_ttl_seconds)
    resp.headers["Cache-Control"] = "no-store"
    logger.info("Admin login id=%s", admin.id)
    return resp


@router.post("/logout", response_model=SuccessResponse)
def logout() -> JSONResponse:
    """Clear the admin session cookie. Always succeeds."""
    resp = JSONResponse(content=SuccessResponse().model_dump(by_alias=True))
    clear_cookie(resp, ADMIN_COOKIE_NAME, admin_cookie_options())
    return resp


@router.get("/me", response_model=AdminSummary | None)
def me(admin: Admin | None = Depends(try_get_current_admin)) -> AdminSummary | None:
    """Return the signed-in admin, or null when there is no valid session."""
    if admin is None:
        return None
    return AdminSummary(**admin.summary())


# ---------------------------------------------------------------------------
# Self-service account changes
# ---------------------------------------------------------------------------


@router.post("/update-email", response_model=SuccessResponse)
def update_email(
    request: Request,
    body: UpdateEmailRequest,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    """Change the caller's email after re-confirming the current password."""
    store: AdminStore = request.app.state.admin_store
    if not verify_password(body.current_password, admin.password_hash):
        raise _wrong_password()

    new_email = str(body.new_email)
    existing = store.find_admin_by_email(new_email)
    if existing is not None and existing.id != admin.id:
        raise _bad_request("This email address is already in use.")

    try:
        store.update_admin_email(admin.id, new_email)
    except ConstraintViolationError as exc:
        raise _bad_request("This email address is already in use.") from exc

    audit: AuditRecorder = request.app.state.audit
    audit.record(
        admin,
        "update_email",
        "admin",
        admin.id,
        {"old_email": admin.email, "new_email": new_email},
        request=request,
    )
    return SuccessResponse()


@router.post("/update-password", response_model=SuccessResponse)
def update_password(
    request: Request,
    body: UpdatePasswordRequest,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    """Change the caller's password after re-confirming the current one.

    Mismatched confirmation and short passwords are rejected by the request
    model (400) before this handler runs.
    """
    store: AdminStore = request.app.state.admin_store
    if not verify_password(body.current_password, admin.password_hash):
        raise _wrong_password()

    store.update_admin_password(admin.id, hash_password(body.new_password))

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "update_password", "admin", admin.id, request=request)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Admin provisioning
# ---------------------------------------------------------------------------


@router.post("/create-admin", response_model=SuccessResponse)
def create_admin(
    request: Request,
    body: CreateAdminRequest,
    caller: Admin | None = Depends(try_get_current_admin),
) -> SuccessResponse:
    """Create an admin account.

    Bootstrap: while the admins table is empty anyone may create the first
    account. Afterwards the caller must be a signed-in super_admin, and the
    session check runs before the duplicate-email check, so an anonymous
    caller gets 401 even for an email that already exists.
    """
    store: AdminStore = request.app.state.admin_store
    if store.count_admins() > 0:
        if caller is None:
            raise HTTPException(
                status_code=401,
                detail={"code": "UNAUTHORIZED", "message": "Authentication required."},
            )
        if caller.role != "super_admin":
            raise HTTPException(
                status_code=403,
                detail={"code": "FORBIDDEN", "message": "Super admin access required."},
            )

    email = str(body.email)
    if store.find_admin_by_email(email) is not None:
        raise _bad_request("An admin with this email already exists.")

    new_admin = Admin(
        email=email,
        password_hash=hash_password(body.password),
        name=body.name,
        role=body.role,
    )
    try:
        new_admin.id = store.insert_admin(new_admin)
    except ConstraintViolationError as exc:
        raise _bad_request("An admin with this email already exists.") from exc

    logger.info("Admin created id=%s role=%s", new_admin.id, new_admin.role)
    if caller is not None:
        audit: AuditRecorder = request.app.state.audit
        audit.record(
            caller,
            "create_admin",
            "admin",
            new_admin.id,
            {"email": email, "role": body.role},
            request=request,
        )
    return SuccessResponse()
