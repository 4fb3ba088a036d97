"""
API request and response models for the admin backend.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/, audit/, and content/,
which own the internal domain representation. Route handlers map between the
two.

Wire format: the admin panel frontend speaks camelCase (isPublished,
currentPassword, ...). Every model derives from _ApiModel, which generates
camelCase aliases and still accepts snake_case field names on input.
FastAPI serializes response_model output by alias.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from content.models import DEFAULT_CATEGORY_COLOR, DEFAULT_NEWS_CATEGORY

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SLUG_PATTERN = r"^[a-z0-9-]+$"
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

EmploymentType = Literal["full_time", "part_time", "contract", "internship"]
AdminRole = Literal["admin", "super_admin"]


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def _check_url_or_blank(value: Optional[str]) -> Optional[str]:
    if value and not value.startswith(("http://", "https://")):
        raise ValueError("Enter a valid URL.")
    return value


def _reject_null(value, info):
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null.")
    return value


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class SuccessResponse(_ApiModel):
    success: bool = True


class CreatedResponse(_ApiModel):
    success: bool = True
    id: int


class PublishToggleResponse(_ApiModel):
    success: bool = True
    is_published: bool


class SlugCheckResponse(_ApiModel):
    available: bool
    reason: Optional[Literal["invalid", "duplicate"]] = None


# ---------------------------------------------------------------------------
# Admin auth
# ---------------------------------------------------------------------------


class AdminLoginRequest(_ApiModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


class AdminSummary(_ApiModel):
    id: int
    email: str
    name: str
    role: str


class LoginResponse(_ApiModel):
    success: bool = True
    admin: AdminSummary


class UpdateEmailRequest(_ApiModel):
    new_email: EmailStr
    current_password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


class UpdatePasswordRequest(_ApiModel):
    """Password change. new_password and confirm_password must match.

    The mismatch check runs before any store access, so a rejected request
    leaves the stored hash untouched.
    """

    current_password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    confirm_password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)

    @model_validator(mode="after")
    def passwords_match(self) -> "UpdatePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("New password and confirmation do not match.")
        return self


class CreateAdminRequest(_ApiModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    name: str = Field(min_length=1, max_length=100)
    role: AdminRole = "admin"


# ---------------------------------------------------------------------------
# NEWS
# ---------------------------------------------------------------------------


class NewsCreate(_ApiModel):
    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=100, pattern=SLUG_PATTERN)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    thumbnail_url: Optional[str] = None
    category: str = DEFAULT_NEWS_CATEGORY
    is_published: bool = False

    @field_validator("thumbnail_url")
    @classmethod
    def check_thumbnail_url(cls, value: Optional[str]) -> Optional[str]:
        return _check_url_or_blank(value)


class NewsUpdate(_ApiModel):
    """Partial update. Only fields present in the request body are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    content: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    thumbnail_url: Optional[str] = None
    category: Optional[str] = None
    is_published: Optional[bool] = None

    @field_validator("thumbnail_url")
    @classmethod
    def check_thumbnail_url(cls, value: Optional[str]) -> Optional[str]:
        return _check_url_or_blank(value)

    @field_validator("title", "slug", "content", "is_published")
    @classmethod
    def check_not_null(cls, value, info: ValidationInfo):
        return _reject_null(value, info)


class NewsResponse(_ApiModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category: Optional[str] = None
    is_published: bool
    published_at: Optional[str] = None
    author_id: int
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class JobCreate(_ApiModel):
    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: str = Field(min_length=1)
    requirements: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=100)
    employment_type: EmploymentType
    salary_range: Optional[str] = Field(default=None, max_length=100)
    is_published: bool = False
    closing_date: Optional[datetime] = None


class JobUpdate(_ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(default=None, min_length=1)
    requirements: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=100)
    employment_type: Optional[EmploymentType] = None
    salary_range: Optional[str] = Field(default=None, max_length=100)
    is_published: Optional[bool] = None
    closing_date: Optional[datetime] = None

    @field_validator("title", "slug", "description", "employment_type", "is_published")
    @classmethod
    def check_not_null(cls, value, info: ValidationInfo):
        return _reject_null(value, info)


class JobResponse(_ApiModel):
    id: int
    title: str
    slug: str
    description: str
    requirements: Optional[str] = None
    location: Optional[str] = None
    employment_type: str
    salary_range: Optional[str] = None
    is_published: bool
    published_at: Optional[str] = None
    closing_date: Optional[str] = None
    author_id: int
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryCreate(_ApiModel):
    name: str = Field(min_length=1, max_length=50)
    slug: str = Field(min_length=1, max_length=50, pattern=SLUG_PATTERN)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, pattern=r"^#[0-9A-Fa-f]{6}$")
    sort_order: int = 0


class CategoryUpdate(_ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=50, pattern=SLUG_PATTERN)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    sort_order: Optional[int] = None

    @field_validator("name", "slug", "color", "sort_order")
    @classmethod
    def check_not_null(cls, value, info: ValidationInfo):
        return _reject_null(value, info)


class CategoryResponse(_ApiModel):
    id: int
    name: str
    slug: str
    color: str
    sort_order: int
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class AuditLogResponse(_ApiModel):
    id: int
    actor_id: int
    actor_email: str
    action: str
    resource_type: str
    resource_id: Optional[int] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: str


# ---------------------------------------------------------------------------
# End users
# ---------------------------------------------------------------------------


class OAuthProviderInfo(BaseModel):
    """One configured OAuth login provider."""

    name: str
    label: str


class UserResponse(_ApiModel):
    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: str
    last_signed_in: Optional[str] = None
