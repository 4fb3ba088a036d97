"""
audit/models.py -- Domain dataclass for audit trail entries.

Entries are append-only: created by AuditRecorder.record() after a successful
mutation, never updated or deleted by the application.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AuditLogEntry:
    """One mutating admin action.

    action is a free-form verb_noun tag ("create_news", "unpublish_job").
    details is opaque JSON text describing the change.
    actor_email is copied at write time so the entry survives later email changes.
    """

    actor_id: int
    actor_email: str
    action: str
    resource_type: str  # "news" | "job" | "category" | "admin"
    resource_id: int | None = None
    details: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert
