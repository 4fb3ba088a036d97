"""
content/models.py -- Domain dataclasses for managed content.

Pure data containers. Publish-state transitions (published_at stamping) live
in content/store.py.
"""

from __future__ import annotations

from dataclasses import dataclass

EMPLOYMENT_TYPES = ("full_time", "part_time", "contract", "internship")
DEFAULT_NEWS_CATEGORY = "お知らせ"
DEFAULT_CATEGORY_COLOR = "#6B7280"


@dataclass
class News:
    """A NEWS article. published_at is set while is_published is True, else None."""

    title: str
    slug: str
    content: str
    author_id: int
    excerpt: str | None = None
    thumbnail_url: str | None = None
    category: str | None = DEFAULT_NEWS_CATEGORY
    is_published: bool = False
    published_at: str | None = None
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Job:
    """A job posting."""

    title: str
    slug: str
    description: str
    employment_type: str  # one of EMPLOYMENT_TYPES
    author_id: int
    requirements: str | None = None
    location: str | None = None
    salary_range: str | None = None
    is_published: bool = False
    published_at: str | None = None
    closing_date: str | None = None  # ISO 8601
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class NewsCategory:
    name: str
    slug: str
    color: str = DEFAULT_CATEGORY_COLOR
    sort_order: int = 0
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
