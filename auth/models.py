"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Two identity universes live here and never mix:
  Admin -- staff accounts with email/password credentials (admins table).
  User  -- public end users created by the OAuth login flow (users table).

Layer rule: no imports from api/, audit/, or content/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

ADMIN_ROLES = ("admin", "super_admin")
USER_ROLES = ("user", "admin")


@dataclass
class Admin:
    """A staff identity for the management panel.

    password_hash is a bcrypt string; the plaintext is never stored.
    is_active=False revokes every outstanding session on the next request,
    because dependencies re-load this row for every protected call.
    """

    email: str
    password_hash: str
    name: str
    role: str = "admin"  # "admin" | "super_admin"
    is_active: bool = True
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store
    updated_at: str | None = None  # ISO 8601, set by store
    last_signed_in: str | None = None  # ISO 8601, set by store

    def summary(self) -> dict:
        """Public projection returned by login and me()."""
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role}


@dataclass
class User:
    """An end user authenticated through an OAuth provider.

    open_id is "<provider>:<subject>" -- the provider's stable identifier,
    namespaced so two providers cannot collide.
    """

    open_id: str
    role: str = "user"  # "user" | "admin"
    name: str | None = None
    email: str | None = None
    login_method: str | None = None  # "github", "google", "oidc"
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store
    updated_at: str | None = None  # ISO 8601, set by store
    last_signed_in: str | None = None  # ISO 8601, set by store


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a signed session token.

    kind is the token "type" tag ("admin" or "user"). expires_at is always
    issued_at + TTL; the codec never returns claims past expiry.
    """

    subject_id: int
    email: str | None
    kind: str
    issued_at: datetime
    expires_at: datetime
