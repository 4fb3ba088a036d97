"""
api/routes/categories.py -- NEWS category master.

Routes:
  GET    /api/admin/categories                 -- public; ordered by sort_order, name
  POST   /api/admin/categories                 -- admin
  PATCH  /api/admin/categories/{category_id}   -- admin
  DELETE /api/admin/categories/{category_id}   -- admin

The list is public because the public site renders category badges from it.
Name and slug are both unique; a clash on either is a 400.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import CategoryCreate, CategoryResponse, CategoryUpdate, CreatedResponse, SuccessResponse
from audit.recorder import AuditRecorder
from auth.dependencies import get_current_admin
from auth.models import Admin
from content.models import NewsCategory
from content.store import ContentStore
from core.errors import ConstraintViolationError

router = APIRouter(prefix="/admin/categories")


def _not_found(category_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "NOT_FOUND", "message": f"Category {category_id} not found."},
    )


def _duplicate() -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"code": "BAD_REQUEST", "message": "A category with this name or slug already exists."},
    )


@router.get("", response_model=list[CategoryResponse])
def list_categories(request: Request) -> list[CategoryResponse]:
    store: ContentStore = request.app.state.content_store
    return [CategoryResponse(**asdict(c)) for c in store.list_categories()]


@router.post("", response_model=CreatedResponse, status_code=201)
def create_category(
    request: Request,
    body: CategoryCreate,
    admin: Admin = Depends(get_current_admin),
) -> CreatedResponse:
    store: ContentStore = request.app.state.content_store
    category = NewsCategory(**body.model_dump())
    try:
        category_id = store.create_category(category)
    except ConstraintViolationError as exc:
        raise _duplicate() from exc

    audit: AuditRecorder = request.app.state.audit
    audit.record(
        admin,
        "create_category",
        "category",
        category_id,
        {"name": category.name, "slug": category.slug},
        request=request,
    )
    return CreatedResponse(id=category_id)


@router.patch("/{category_id}", response_model=SuccessResponse)
def update_category(
    request: Request,
    category_id: int,
    body: CategoryUpdate,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    store: ContentStore = request.app.state.content_store
    fields = body.model_dump(exclude_unset=True)
    try:
        updated = store.update_category(category_id, **fields)
    except ConstraintViolationError as exc:
        raise _duplicate() from exc
    if not updated:
        raise _not_found(category_id)

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "update_category", "category", category_id, {"fields": sorted(fields)}, request=request)
    return SuccessResponse()


@router.delete("/{category_id}", response_model=SuccessResponse)
def delete_category(
    request: Request,
    category_id: int,
    admin: Admin = Depends(get_current_admin),
) -> SuccessResponse:
    store: ContentStore = request.app.state.content_store
    category = store.get_category(category_id)
    if category is None or not store.delete_category(category_id):
        raise _not_found(category_id)

    audit: AuditRecorder = request.app.state.audit
    audit.record(admin, "delete_category", "category", category_id, {"name": category.name}, request=request)
    return SuccessResponse()
