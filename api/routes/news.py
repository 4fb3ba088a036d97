"""
api/routes/news.py -- NEWS article management for the admin panel.

Routes (check-slug registered before /{news_id} to avoid path capture):
  GET    /api/admin/news                         -- list all articles (drafts included)
  GET    /api/admin/news/check-slug              -- slug availability
  GET    /api/admin/news/{news_id}               -- one article
  POST   /api/admin/news                         -- create
  PATCH  /api/admin/news/{news_id}               -- partial update
  DELETE /api/admin/news/{news_id}               -- delete
  POST   /api/admin/news/{news_id}/toggle-publish -- flip is_published

Every successful mutation writes exactly one audit entry after the store call
returns. Failed mutations (404, duplicate slug, storage error) write none.
"""

from __future__ import annotations

import re
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import (
    SLUG_PATTERN,
    CreatedResponse,
    NewsCreate,
    NewsResponse,
    NewsUpdate,
    PublishToggleResponse,
    SlugCheckResponse,
    SuccessResponse,
)
from audit.recorder import AuditRecorder
from auth.dependencies import get_current_admin
from auth.models import Admin
from content.models import News
from content.store import ContentStore
from core.errors import ConstraintViolationError

router = APIRouter(prefix="/admin/news", dependencies=[Depends(get_current_admin)])

_SLUG_RE = re.compile(SLUG_PATTERN)


def _not_found(news_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "NOT_FOUND", "message": f"News article {news_id} not found."},
    )


def _duplicate_slug() -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"code": "BAD_REQUEST", "message": "This slug is already in use."},
    )


@router.get("", response_model=list[NewsResponse])
def list_news(request: Request) -> list[NewsResponse]:
    store: ContentStore = request.app.state.content_store
    return [NewsResponse(**asdict(n)) for n in store.list_news()]


@router.get("/check-slug", response_model=SlugCheckResponse)
def check_slug(request: Request, slug: str, exclude_id: int | None = None) -> SlugCheckResponse:
    """Report whether slug is well-formed and not taken by another article."""
    if not _SLUG_RE.match(slug):
        return SlugCheckResponse(available=False, reason="invalid")
    store: ContentStore = request.app.state.content_store
    if store.get_news_by_slug(slug, exclude_id=exclude_id) is not None:
        return SlugCheckResponse(available=False, reason="duplicate")
    return SlugCheckResponse(available=True)


@router.get("/{news_id}", response_model=NewsResponse)
def get_news(request: Request, news_id: int) -> NewsResponse:
    store: ContentStore = request.app.state.content_store
    news = store.get_news(news_id)
    if news is None:
        raise _not_found(news_id)
    return NewsResponse(**asdict(news))


@router.post("", response_model=CreatedResponse, status_code=201)
def create_news(
    request: Request,
    body: NewsCreate,
    admin: Admin = Depends(get_current_admin),
) -> CreatedResponse:
    store: ContentStore = request.app.state.content_store
    if store.get_news_by_slug(body.slug) is not None:
        raise _duplicate_slug()

    news = News(author_id=admin.id, **body.model_dump())
    try:
        news_id = store.create_news(news)
    except ConstraintViolationError as exc:
        raise _duplicate_slug() from exc

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "create_news", "news", news_id, {"title": news.title, "slug": news.slug}, request=request)
    return CreatedResponse(id=news_id)


@router.patch("/{news_id}", response_model=SuccessResponse)
def update_news(
    request: Request,
    news_id: int,
    body: NewsUpdate,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    """Apply the fields present in the body. Absent fields are left untouched."""
    store: ContentStore = request.app.state.content_store
    existing = store.get_news(news_id)
    if existing is None:
        raise _not_found(news_id)

    fields = body.model_dump(exclude_unset=True)
    if fields.get("slug") and store.get_news_by_slug(fields["slug"], exclude_id=news_id) is not None:
        raise _duplicate_slug()

    try:
        updated = store.update_news(news_id, **fields)
    except ConstraintViolationError as exc:
        raise _duplicate_slug() from exc
    if not updated:
        raise _not_found(news_id)

    audit: AuditRecorder = request.app.state.audit
    changes = body.model_dump(exclude_unset=True, by_alias=True, mode="json")
    audit.record(
        admin,
        "update_news",
        "news",
        news_id,
        {"title": existing.title, "changes": changes},
        request=request,
    )
    return SuccessResponse()


@router.delete("/{news_id}", response_model=SuccessResponse)
def delete_news(
    request: Request,
    news_id: int,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    store: ContentStore = request.app.state.content_store
    news = store.get_news(news_id)
    if news is None or not store.delete_news(news_id):
        raise _not_found(news_id)

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "delete_news", "news", news_id, {"title": news.title}, request=request)
    return SuccessResponse()


@router.post("/{news_id}/toggle-publish", response_model=PublishToggleResponse)
def toggle_publish(
    request: Request,
    news_id: int,
    admin: Admin = Depends(get_current_admin),
) -> PublishToggleResponse:
    """Flip the publish state. Publishing stamps published_at; unpublishing clears it."""
    store: ContentStore = request.app.state.content_store
    news = store.get_news(news_id)
    if news is None:
        raise _not_found(news_id)

    is_published = not news.is_published
    if not store.set_news_published(news_id, is_published):
        raise _not_found(news_id)

    audit: AuditRecorder = request.app.state.audit
    action = "publish_news" if is_published else "unpublish_news"
    audit.record(admin, action, "news", news_id, {"title": news.title}, request=request)
    return PublishToggleResponse(is_published=is_published)
