"""
audit/recorder.py -- Best-effort audit side effect for admin mutations.

Contract:
  - record() is called strictly after the primary mutation succeeded.
  - It writes exactly one entry and never retries.
  - A storage failure is logged as a warning and swallowed: the audit trail is
    advisory, not transactional with the primary write, so it must never fail
    the user-facing mutation that triggered it.

Read side:
  list() and list_by_actor() clamp the caller's limit so a single request
  cannot pull the whole table.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from starlette.requests import Request

from audit.models import AuditLogEntry
from audit.store import AuditStore
from auth.models import Admin
from core.errors import StorageError

logger = logging.getLogger("wojp.audit")

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 500
DEFAULT_ACTOR_LIMIT = 50
MAX_ACTOR_LIMIT = 200


def _clamp(limit: int | None, default: int, maximum: int) -> int:
    if limit is None:
        return default
    return max(1, min(limit, maximum))


def client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


class AuditRecorder:
    """Writes and reads audit entries through an AuditStore."""

    def __init__(self, store: AuditStore) -> None:
        self.store = store

    def record(
        self,
        actor: Admin,
        action: str,
        resource_type: str,
        resource_id: int | None = None,
        details: Mapping[str, Any] | str | None = None,
        request: Request | None = None,
    ) -> AuditLogEntry | None:
        """Persist one entry. Returns the entry, or None if the write failed."""
        if isinstance(details, Mapping):
            details = json.dumps(details, ensure_ascii=False, default=str)

        entry = AuditLogEntry(
            actor_id=actor.id,
            actor_email=actor.email,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=client_ip(request) if request is not None else None,
            user_agent=request.headers.get("user-agent") if request is not None else None,
        )
        try:
            entry.id = self.store.insert_audit_log(entry)
        except StorageError as exc:
            logger.warning(
                "Audit write failed (action=%s resource=%s:%s): %s",
                action,
                resource_type,
                resource_id,
                exc,
            )
            return None
        return entry

    def list(self, limit: int | None = None) -> list[AuditLogEntry]:
        """Newest-first entries, limit clamped to [1, MAX_LIST_LIMIT]."""
        return self.store.list_audit_logs(_clamp(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT))

    def list_by_actor(self, actor_id: int, limit: int | None = None) -> list[AuditLogEntry]:
        """Newest-first entries for one admin, limit clamped to [1, MAX_ACTOR_LIMIT]."""
        return self.store.list_audit_logs_by_actor(actor_id, _clamp(limit, DEFAULT_ACTOR_LIMIT, MAX_ACTOR_LIMIT))
