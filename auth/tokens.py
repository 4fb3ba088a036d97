"""
auth/tokens.py -- Password hashing and signed session tokens.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper), cost factor 10. Each
       call draws a fresh salt, so identical passwords hash differently. The
       _DUMMY_HASH constant enables timing equalization in
       authenticate_admin() so response time does not reveal whether an email
       exists.

  Tokens: python-jose with HS256. One codec serves both identity universes;
       the claims carry a "type" tag ("admin" or "user") and a verifier for
       one kind rejects the other even when both share a signing secret.
       Verification returns None on any failure -- the dependency layer turns
       that into a uniform 401.

  Secrets: the admin universe signs with Settings.admin_signing_secret
       (ADMIN_JWT_SECRET, falling back to JWT_SECRET); end-user sessions sign
       with JWT_SECRET. An empty secret fails closed: issue raises, verify
       returns None.

Layer rule: no imports from api/, audit/, or content/. Import from core/ is
allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import SessionClaims
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Admin
    from auth.store import AdminStore

logger = logging.getLogger("wojp.auth")

_ALGORITHM = "HS256"
_BCRYPT_ROUNDS = 10

ADMIN_TOKEN = "admin"
USER_TOKEN = "user"

# Name of the identity claim for each token kind. Admin tokens keep the
# {adminId, email, type} shape consumed by the panel frontend.
_ID_CLAIMS = {
    ADMIN_TOKEN: "adminId",
    USER_TOKEN: "userId",
}


# ---------------------------------------------------------------------------
# Password hashing (bcrypt)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are truncated by bcrypt. The API layer caps
    password fields at 128 characters.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or empty hash yields False rather than an exception.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("wojp_timing_dummy")


def authenticate_admin(store: AdminStore, email: str, password: str) -> Admin | None:
    """Authenticate an admin email/password login with timing equalization.

    Always runs bcrypt whether or not the admin exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash

    Inactive accounts are rejected after the password check so the response
    is indistinguishable from bad credentials. Returns the Admin on success.
    Storage errors propagate to the caller.
    """
    admin = store.find_admin_by_email(email)
    if admin is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, admin.password_hash):
        return None
    if not admin.is_active:
        logger.info("Login refused for inactive admin id=%s", admin.id)
        return None
    return admin


# ---------------------------------------------------------------------------
# Session token codec
# ---------------------------------------------------------------------------


def _default_secret(kind: str) -> str:
    settings = get_settings()
    if kind == ADMIN_TOKEN:
        return settings.admin_signing_secret
    return settings.jwt_secret


def issue_token(
    subject_id: int,
    email: str | None,
    kind: str,
    ttl_seconds: int,
    secret: str | None = None,
) -> str:
    """Sign a session token for subject_id, tagged with kind, valid for ttl_seconds.

    Raises ValueError for an unknown kind or an empty signing secret -- a
    misconfigured deployment must not mint tokens.
    """
    if kind not in _ID_CLAIMS:
        raise ValueError(f"Unknown token kind: {kind!r}")
    key = _default_secret(kind) if secret is None else secret
    if not key:
        raise ValueError("Refusing to sign a session token with an empty secret.")

    issued_at = datetime.now(timezone.utc)
    payload = {
        _ID_CLAIMS[kind]: subject_id,
        "email": email,
        "type": kind,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, key, algorithm=_ALGORITHM)


def verify_token(token: str | None, kind: str, secret: str | None = None) -> SessionClaims | None:
    """Verify signature, expiry, and type tag. Returns SessionClaims or None.

    Returning None (rather than raising) keeps callers simple: malformed,
    forged, expired, and wrong-kind tokens are all "no session".
    """
    if not token or kind not in _ID_CLAIMS:
        return None
    key = _default_secret(kind) if secret is None else secret
    if not key:
        logger.error("Session verification attempted with an empty signing secret")
        return None

    try:
        payload = jwt.decode(token, key, algorithms=[_ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != kind:
        return None
    subject_id = payload.get(_ID_CLAIMS[kind])
    if not isinstance(subject_id, int) or isinstance(subject_id, bool):
        return None
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not isinstance(iat, (int, float)) or not isinstance(exp, (int, float)):
        return None

    return SessionClaims(
        subject_id=subject_id,
        email=payload.get("email"),
        kind=kind,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


def create_admin_token(admin_id: int, email: str) -> str:
    """Issue the admin panel session token ({adminId, email, type:"admin"})."""
    return issue_token(admin_id, email, ADMIN_TOKEN, get_settings().admin_session_ttl_seconds)


def decode_admin_token(token: str | None) -> SessionClaims | None:
    return verify_token(token, ADMIN_TOKEN)


def create_user_token(user_id: int, email: str | None) -> str:
    """Issue an end-user session token ({userId, email, type:"user"})."""
    return issue_token(user_id, email, USER_TOKEN, get_settings().user_session_ttl_seconds)


def decode_user_token(token: str | None) -> SessionClaims | None:
    return verify_token(token, USER_TOKEN)
