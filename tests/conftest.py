"""
tests/conftest.py -- Shared test fixtures for the admin backend.

This module provides:
  - db_url: a unique named shared-memory SQLite URL
  - bare_stores / stores: every repository on one isolated database;
    stores also seeds a regular admin and a super_admin
  - bare_client / client: TestClient over the real app with a patched lifespan
  - login: fixture returning a helper that signs an admin in

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates JWT_SECRET in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from unittest.mock import MagicMock

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate JWT_SECRET in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from audit.recorder import AuditRecorder
from audit.store import AuditStore
from auth.models import Admin
from auth.store import AdminStore, UserStore
from auth.tokens import hash_password
from content.store import ContentStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret123"  # noqa: S105 -- test fixture credential
SUPER_EMAIL = "root@example.com"
SUPER_PASSWORD = "rootpass123"  # noqa: S105 -- test fixture credential


def make_db_url() -> str:
    return f"sqlite:///file:wojp_test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def db_url() -> str:
    """A fresh, empty database for store-level tests."""
    return make_db_url()


@dataclass
class Stores:
    admin: AdminStore
    user: UserStore
    content: ContentStore
    audit_store: AuditStore
    audit: AuditRecorder
    admin_id: int | None = None
    super_admin_id: int | None = None

    def close(self) -> None:
        self.admin.close()
        self.user.close()
        self.content.close()
        self.audit_store.close()


def _build_stores(db_url: str) -> Stores:
    audit_store = AuditStore(db_url)
    return Stores(
        admin=AdminStore(db_url),
        user=UserStore(db_url),
        content=ContentStore(db_url),
        audit_store=audit_store,
        audit=AuditRecorder(audit_store),
    )


def _patch_lifespan(stores: Stores):
    """Return a lifespan that wires the test stores into app.state.

    The OAuth registry is a MagicMock so no provider is ever contacted.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.admin_store = stores.admin
        app.state.user_store = stores.user
        app.state.content_store = stores.content
        app.state.audit = stores.audit
        app.state.oauth = MagicMock()
        yield

    return test_lifespan


def _serve(stores: Stores) -> Generator[TestClient, None, None]:
    app.router.lifespan_context = _patch_lifespan(stores)
    limiter.enabled = False
    try:
        with TestClient(app, raise_server_exceptions=True) as c:
            yield c
    finally:
        limiter.enabled = True


@pytest.fixture
def bare_stores() -> Generator[Stores, None, None]:
    """Fresh database per test with no admins (createAdmin bootstrap mode)."""
    s = _build_stores(make_db_url())
    yield s
    s.close()


@pytest.fixture
def stores(bare_stores: Stores) -> Stores:
    """bare_stores plus a regular admin and a super_admin."""
    bare_stores.admin_id = bare_stores.admin.insert_admin(
        Admin(email=ADMIN_EMAIL, password_hash=hash_password(ADMIN_PASSWORD), name="Site Admin")
    )
    bare_stores.super_admin_id = bare_stores.admin.insert_admin(
        Admin(email=SUPER_EMAIL, password_hash=hash_password(SUPER_PASSWORD), name="Root", role="super_admin")
    )
    return bare_stores


@pytest.fixture
def client(stores: Stores) -> Generator[TestClient, None, None]:
    """TestClient against the real app, rate limiting disabled."""
    yield from _serve(stores)


@pytest.fixture
def bare_client(bare_stores: Stores) -> Generator[TestClient, None, None]:
    """TestClient over an admins table with no rows."""
    yield from _serve(bare_stores)


@pytest.fixture
def login(client: TestClient):
    """Return a helper that signs in through the real endpoint.

    The session cookie lands in client.cookies, so later requests on the same
    client are authenticated.
    """

    def _login(email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD):
        return client.post("/api/admin/auth/login", json={"email": email, "password": password})

    return _login
