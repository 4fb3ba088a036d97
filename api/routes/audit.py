"""
api/routes/audit.py -- Read access to the admin audit trail.

Routes:
  GET /api/admin/audit                      -- newest-first, ?limit= (default 100, max 500)
  GET /api/admin/audit/by-admin/{admin_id}  -- one admin's entries (default 50, max 200)

Out-of-range limits are clamped by AuditRecorder, not rejected.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from api.models import AuditLogResponse
from audit.recorder import AuditRecorder
from auth.dependencies import get_current_admin

router = APIRouter(prefix="/admin/audit", dependencies=[Depends(get_current_admin)])


@router.get("", response_model=list[AuditLogResponse])
def list_audit_logs(request: Request, limit: int | None = None) -> list[AuditLogResponse]:
    audit: AuditRecorder = request.app.state.audit
    return [AuditLogResponse(**asdict(e)) for e in audit.list(limit)]


@router.get("/by-admin/{admin_id}", response_model=list[AuditLogResponse])
def list_audit_logs_by_admin(request: Request, admin_id: int, limit: int | None = None) -> list[AuditLogResponse]:
    audit: AuditRecorder = request.app.state.audit
    return [AuditLogResponse(**asdict(e)) for e in audit.list_by_actor(admin_id, limit)]
