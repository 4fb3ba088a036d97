"""
api/routes/jobs.py -- Job posting management for the admin panel.

Routes:
  GET    /api/admin/jobs                          -- list all postings
  GET    /api/admin/jobs/check-slug               -- slug availability
  GET    /api/admin/jobs/{job_id}                 -- one posting
  POST   /api/admin/jobs                          -- create
  PATCH  /api/admin/jobs/{job_id}                 -- partial update
  DELETE /api/admin/jobs/{job_id}                 -- delete
  POST   /api/admin/jobs/{job_id}/toggle-publish  -- flip is_published

Audit actions: create_job, update_job, delete_job, publish_job, unpublish_job.
"""

from __future__ import annotations

import re
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import (
    SLUG_PATTERN,
    CreatedResponse,
    JobCreate,
    JobResponse,
    JobUpdate,
    PublishToggleResponse,
    SlugCheckResponse,
    SuccessResponse,
)
from audit.recorder import AuditRecorder
from auth.dependencies import get_current_admin
from auth.models import Admin
from content.models import Job
from content.store import ContentStore
from core.errors import ConstraintViolationError

router = APIRouter(prefix="/admin/jobs", dependencies=[Depends(get_current_admin)])

_SLUG_RE = re.compile(SLUG_PATTERN)


def _not_found(job_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "NOT_FOUND", "message": f"Job posting {job_id} not found."},
    )


def _duplicate_slug() -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"code": "BAD_REQUEST", "message": "This slug is already in use."},
    )


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    # closing_date is stored as ISO 8601 text
    if fields.get("closing_date") is not None:
        fields["closing_date"] = fields["closing_date"].isoformat()
    return fields


@router.get("", response_model=list[JobResponse])
def list_jobs(request: Request) -> list[JobResponse]:
    store: ContentStore = request.app.state.content_store
    return [JobResponse(**asdict(j)) for j in store.list_jobs()]


@router.get("/check-slug", response_model=SlugCheckResponse)
def check_slug(request: Request, slug: str, exclude_id: int | None = None) -> SlugCheckResponse:
    if not _SLUG_RE.match(slug):
        return SlugCheckResponse(available=False, reason="invalid")
    store: ContentStore = request.app.state.content_store
    if store.get_job_by_slug(slug, exclude_id=exclude_id) is not None:
        return SlugCheckResponse(available=False, reason="duplicate")
    return SlugCheckResponse(available=True)


@router.get("/{job_id}", response_model=JobResponse)
def get_job(request: Request, job_id: int) -> JobResponse:
    store: ContentStore = request.app.state.content_store
    job = store.get_job(job_id)
    if job is None:
        raise _not_found(job_id)
    return JobResponse(**asdict(job))


@router.post("", response_model=CreatedResponse, status_code=201)
def create_job(
    request: Request,
    body: JobCreate,
    admin: Admin = Depends(get_current_admin),
) -> CreatedResponse:
    store: ContentStore = request.app.state.content_store
    if store.get_job_by_slug(body.slug) is not None:
        raise _duplicate_slug()

    job = Job(author_id=admin.id, **_to_columns(body.model_dump()))
    try:
        job_id = store.create_job(job)
    except ConstraintViolationError as exc:
        raise _duplicate_slug() from exc

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "create_job", "job", job_id, {"title": job.title, "slug": job.slug}, request=request)
    return CreatedResponse(id=job_id)


@router.patch("/{job_id}", response_model=SuccessResponse)
def update_job(
    request: Request,
    job_id: int,
    body: JobUpdate,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    store: ContentStore = request.app.state.content_store
    existing = store.get_job(job_id)
    if existing is None:
        raise _not_found(job_id)

    fields = _to_columns(body.model_dump(exclude_unset=True))
    if fields.get("slug") and store.get_job_by_slug(fields["slug"], exclude_id=job_id) is not None:
        raise _duplicate_slug()

    try:
        updated = store.update_job(job_id, **fields)
    except ConstraintViolationError as exc:
        raise _duplicate_slug() from exc
    if not updated:
        raise _not_found(job_id)

    audit: AuditRecorder = request.app.state.audit
    changes = body.model_dump(exclude_unset=True, by_alias=True, mode="json")
    audit.record(
        admin,
        "update_job",
        "job",
        job_id,
        {"title": existing.title, "changes": changes},
        request=request,
    )
    return SuccessResponse()


@router.delete("/{job_id}", response_model=SuccessResponse)
def delete_job(
    request: Request,
    job_id: int,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    store: ContentStore = request.app.state.content_store
    job = store.get_job(job_id)
    if job is None or not store.delete_job(job_id):
        raise _not_found(job_id)

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "delete_job", "job", job_id, {"title": job.title}, request=request)
    return SuccessResponse()


@router.post("/{job_id}/toggle-publish", response_model=PublishToggleResponse)
def toggle_publish(
    request: Request,
    job_id: int,
    admin: Admin = Depends(get_current_admin),
) -> PublishToggleResponse:
    store: ContentStore = request.app.state.content_store
    job = store.get_job(job_id)
    if job is None:
        raise _not_found(job_id)

    is_published = not job.is_published
    if not store.set_job_published(job_id, is_published):
        raise _not_found(job_id)

    audit: AuditRecorder = request.app.state.audit
    action = "publish_job" if is_published else "unpublish_job"
    audit.record(admin, action, "job", job_id, {"title": job.title}, request=request)
    return PublishToggleResponse(is_published=is_published)
