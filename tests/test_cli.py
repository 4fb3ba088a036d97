"""
tests/test_cli.py -- Tests for the main.py maintenance commands.

Each test points the CLI at its own in-memory database through
--database-url and inspects the result with a second AdminStore.
"""

from __future__ import annotations

import pytest

import main
from auth.store import AdminStore
from auth.tokens import verify_password
from core.config import get_settings


@pytest.fixture
def store(db_url: str):
    # Holding a connection open keeps the shared in-memory database alive
    # between CLI invocations.
    store = AdminStore(db_url)
    yield store
    store.close()


def _run(db_url: str, *args: str) -> int:
    return main.main(["--database-url", db_url, *args])


def test_create_admin(db_url: str, store: AdminStore, capsys) -> None:
    code = _run(db_url, "create-admin", "ops@example.com", "--name", "Ops", "--password", "secret123")
    assert code == 0
    admin = store.find_admin_by_email("ops@example.com")
    assert admin.role == "admin"
    assert verify_password("secret123", admin.password_hash)
    assert "Created admin" in capsys.readouterr().out


def test_create_super_admin(db_url: str, store: AdminStore) -> None:
    _run(db_url, "create-admin", "root@example.com", "--name", "Root", "--role", "super_admin", "--password", "x" * 8)
    assert store.find_admin_by_email("root@example.com").role == "super_admin"


def test_create_duplicate_fails(db_url: str, store: AdminStore) -> None:
    _run(db_url, "create-admin", "ops@example.com", "--name", "Ops", "--password", "secret123")
    assert _run(db_url, "create-admin", "ops@example.com", "--name", "Ops", "--password", "secret123") == 1
    assert store.count_admins() == 1


def test_short_password_rejected(db_url: str, store: AdminStore) -> None:
    assert _run(db_url, "create-admin", "ops@example.com", "--name", "Ops", "--password", "short") == 1
    assert store.count_admins() == 0


def test_reset_password(db_url: str, store: AdminStore) -> None:
    _run(db_url, "create-admin", "ops@example.com", "--name", "Ops", "--password", "secret123")
    assert _run(db_url, "reset-password", "ops@example.com", "--password", "another123") == 0
    assert verify_password("another123", store.find_admin_by_email("ops@example.com").password_hash)


def test_prompted_password_mismatch(db_url: str, store: AdminStore, monkeypatch) -> None:
    answers = iter(["secret123", "secret124"])
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt: next(answers))
    assert _run(db_url, "create-admin", "ops@example.com", "--name", "Ops") == 1
    assert store.count_admins() == 0


def test_deactivate_and_activate(db_url: str, store: AdminStore) -> None:
    _run(db_url, "create-admin", "ops@example.com", "--name", "Ops", "--password", "secret123")
    assert _run(db_url, "deactivate-admin", "ops@example.com") == 0
    assert store.find_admin_by_email("ops@example.com").is_active is False
    assert _run(db_url, "activate-admin", "ops@example.com") == 0
    assert store.find_admin_by_email("ops@example.com").is_active is True


def test_unknown_admin(db_url: str, store: AdminStore) -> None:
    assert _run(db_url, "deactivate-admin", "ghost@example.com") == 1


def test_missing_jwt_secret_in_production_is_reported(monkeypatch, capsys) -> None:
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    get_settings.cache_clear()
    try:
        assert main.main(["deactivate-admin", "ops@example.com"]) == 2
    finally:
        get_settings.cache_clear()
    out = capsys.readouterr().out
    assert "[!] Configuration error" in out
    assert "JWT_SECRET" in out
