"""
audit/store.py -- SQLAlchemy Core persistence for audit log entries.

The table is append-only from the application's point of view: there is no
update or delete method. Reads are newest-first with id as the tie-breaker,
since several entries can share a created_at timestamp.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from audit.models import AuditLogEntry
from core.config import get_settings
from core.db import make_engine, now_iso, translate_errors

_metadata = MetaData()

_audit_logs = Table(
    "audit_logs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("actor_id", Integer, nullable=False, index=True),
    Column("actor_email", String(320), nullable=False),
    Column("action", String(64), nullable=False),
    Column("resource_type", String(32), nullable=False),
    Column("resource_id", Integer),
    Column("details", Text),  # JSON text
    Column("ip_address", String(64)),
    Column("user_agent", Text),
    Column("created_at", String(32), nullable=False),
)


class AuditStore:
    """Repository for AuditLogEntry rows."""

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        with translate_errors("create audit schema"):
            _metadata.create_all(self.engine)

    def insert_audit_log(self, entry: AuditLogEntry) -> int:
        with translate_errors("insert audit log"), self.engine.connect() as conn:
            result = conn.execute(
                _audit_logs.insert().values(
                    actor_id=entry.actor_id,
                    actor_email=entry.actor_email,
                    action=entry.action,
                    resource_type=entry.resource_type,
                    resource_id=entry.resource_id,
                    details=entry.details,
                    ip_address=entry.ip_address,
                    user_agent=entry.user_agent,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_audit_logs(self, limit: int) -> list[AuditLogEntry]:
        """Return up to limit entries, newest first."""
        query = _audit_logs.select().order_by(_audit_logs.c.created_at.desc(), _audit_logs.c.id.desc()).limit(limit)
        with translate_errors("list audit logs"), self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_entry(r) for r in rows]

    def list_audit_logs_by_actor(self, actor_id: int, limit: int) -> list[AuditLogEntry]:
        """Return up to limit entries written by actor_id, newest first."""
        query = (
            _audit_logs.select()
            .where(_audit_logs.c.actor_id == actor_id)
            .order_by(_audit_logs.c.created_at.desc(), _audit_logs.c.id.desc())
            .limit(limit)
        )
        with translate_errors("list audit logs by actor"), self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_entry(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


def _row_to_entry(row) -> AuditLogEntry:
    return AuditLogEntry(
        id=row.id,
        actor_id=row.actor_id,
        actor_email=row.actor_email,
        action=row.action,
        resource_type=row.resource_type,
        resource_id=row.resource_id,
        details=row.details,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        created_at=row.created_at,
    )
