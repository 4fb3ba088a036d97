"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper. AdminStore and UserStore are the
repositories; _row_to_admin / _row_to_user are the mappers. Route and
dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Errors:
  Every statement runs inside core.db.translate_errors(), so callers see
  StorageUnavailableError / ConstraintViolationError instead of driver
  exceptions. Duplicate emails on insert_admin surface as
  ConstraintViolationError via the UNIQUE index.

Layer rule: no imports from api/, audit/, or content/.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import Admin, User
from core.config import get_settings
from core.db import make_engine, now_iso, translate_errors

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("name", String(100), nullable=False),
    Column("role", String(20), nullable=False, server_default="admin"),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("last_signed_in", String(32)),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("open_id", String(255), nullable=False, unique=True),  # "<provider>:<subject>"
    Column("name", Text),
    Column("email", String(320)),
    Column("login_method", String(30)),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("last_signed_in", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Admin repository
# ---------------------------------------------------------------------------


class AdminStore:
    """Repository for Admin entities.

    Usage:
        store = AdminStore("sqlite:///:memory:")
        admin_id = store.insert_admin(Admin(email="a@example.com", password_hash=..., name="A"))
        admin = store.find_admin_by_id(admin_id)
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        with translate_errors("create admin schema"):
            _metadata.create_all(self.engine)

    def count_admins(self) -> int:
        """Return the number of admin rows. Zero means createAdmin is in bootstrap mode."""
        with translate_errors("count admins"), self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_admins)).scalar()
        return result or 0

    def find_admin_by_email(self, email: str) -> Admin | None:
        """Look up an admin by exact email. Returns None if not found."""
        with translate_errors("find admin by email"), self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.email == email)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def find_admin_by_id(self, admin_id: int) -> Admin | None:
        """Look up an admin by primary key. Returns None if not found."""
        with translate_errors("find admin by id"), self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def insert_admin(self, admin: Admin) -> int:
        """Insert a new admin and return its assigned ID.

        Raises ConstraintViolationError if the email already exists.
        """
        now = now_iso()
        with translate_errors("insert admin"), self.engine.connect() as conn:
            result = conn.execute(
                _admins.insert().values(
                    email=admin.email,
                    password_hash=admin.password_hash,
                    name=admin.name,
                    role=admin.role,
                    is_active=admin.is_active,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_admin_last_signed_in(self, admin_id: int) -> None:
        """Stamp the current UTC timestamp as last_signed_in."""
        with translate_errors("update admin last_signed_in"), self.engine.connect() as conn:
            conn.execute(_admins.update().where(_admins.c.id == admin_id).values(last_signed_in=now_iso()))
            conn.commit()

    def update_admin_email(self, admin_id: int, email: str) -> bool:
        """Change an admin's email. Returns False if admin_id was not found.

        Raises ConstraintViolationError if another admin already owns email.
        """
        return self._update(admin_id, "update admin email", email=email)

    def update_admin_password(self, admin_id: int, password_hash: str) -> bool:
        """Replace an admin's password hash. Returns False if admin_id was not found."""
        return self._update(admin_id, "update admin password", password_hash=password_hash)

    def set_admin_active(self, admin_id: int, is_active: bool) -> bool:
        """Activate or deactivate an admin. Deactivation revokes sessions on the next request."""
        return self._update(admin_id, "set admin active", is_active=is_active)

    def _update(self, admin_id: int, operation: str, **fields) -> bool:
        fields["updated_at"] = now_iso()
        with translate_errors(operation), self.engine.connect() as conn:
            result = conn.execute(_admins.update().where(_admins.c.id == admin_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# End-user repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for OAuth end users (the public identity universe)."""

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        with translate_errors("create user schema"):
            _metadata.create_all(self.engine)

    def get_by_id(self, user_id: int) -> User | None:
        with translate_errors("find user by id"), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_open_id(self, open_id: str) -> User | None:
        with translate_errors("find user by open_id"), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.open_id == open_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def upsert_user(self, user: User) -> int:
        """Insert the user or refresh profile fields and last_signed_in. Returns the ID.

        role is only written on insert or when the caller asks for "admin";
        an existing admin is never demoted by a later login.
        """
        now = now_iso()
        with translate_errors("upsert user"), self.engine.connect() as conn:
            existing = conn.execute(_users.select().where(_users.c.open_id == user.open_id)).fetchone()
            if existing is None:
                result = conn.execute(
                    _users.insert().values(
                        open_id=user.open_id,
                        name=user.name,
                        email=user.email,
                        login_method=user.login_method,
                        role=user.role,
                        created_at=now,
                        updated_at=now,
                        last_signed_in=now,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]

            updates = {
                "name": user.name,
                "email": user.email,
                "login_method": user.login_method,
                "updated_at": now,
                "last_signed_in": now,
            }
            if user.role == "admin":
                updates["role"] = "admin"
            conn.execute(_users.update().where(_users.c.id == existing.id).values(**updates))
            conn.commit()
            return existing.id

    def list_users(self) -> list[User]:
        """Return all end users, most recently signed in first."""
        with translate_errors("list users"), self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.last_signed_in.desc())).fetchall()
        return [_row_to_user(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        name=row.name,
        role=row.role,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_signed_in=row.last_signed_in,
    )


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        open_id=row.open_id,
        name=row.name,
        email=row.email,
        login_method=row.login_method,
        role=row.role,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_signed_in=row.last_signed_in,
    )
