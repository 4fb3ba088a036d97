"""
content/store.py -- SQLAlchemy Core persistence for NEWS, jobs, and categories.

Pattern: Repository + Data Mapper. Column names match the dataclass fields in
content/models.py one-to-one, so rows map with Model(**row._mapping).

Publish-state rule (applied by set_published and by update when is_published
changes): publishing stamps published_at with the current time, unpublishing
clears it.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Engine

from content.models import DEFAULT_CATEGORY_COLOR, DEFAULT_NEWS_CATEGORY, Job, News, NewsCategory
from core.config import get_settings
from core.db import make_engine, now_iso, translate_errors

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_news = Table(
    "news",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(100), nullable=False, unique=True),
    Column("content", Text, nullable=False),
    Column("excerpt", Text),
    Column("thumbnail_url", Text),
    Column("category", String(50), server_default=DEFAULT_NEWS_CATEGORY),
    Column("is_published", Boolean, nullable=False, server_default="0"),
    Column("published_at", String(32)),
    Column("author_id", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_jobs = Table(
    "jobs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(100), nullable=False, unique=True),
    Column("description", Text, nullable=False),
    Column("requirements", Text),
    Column("location", String(100)),
    Column("employment_type", String(20), nullable=False),
    Column("salary_range", String(100)),
    Column("is_published", Boolean, nullable=False, server_default="0"),
    Column("published_at", String(32)),
    Column("closing_date", String(32)),
    Column("author_id", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_categories = Table(
    "news_categories",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False, unique=True),
    Column("slug", String(50), nullable=False, unique=True),
    Column("color", String(16), nullable=False, server_default=DEFAULT_CATEGORY_COLOR),
    Column("sort_order", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_SERVER_MANAGED = ("id", "created_at", "updated_at")


class ContentStore:
    """Repository for News, Job, and NewsCategory entities.

    Raises ConstraintViolationError on duplicate slugs (and duplicate category
    names); StorageUnavailableError when the database cannot be reached.
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        with translate_errors("create content schema"):
            _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # NEWS
    # ------------------------------------------------------------------

    def list_news(self) -> list[News]:
        return [News(**row._mapping) for row in self._list(_news, _news.c.created_at.desc(), _news.c.id.desc())]

    def get_news(self, news_id: int) -> News | None:
        row = self._get(_news, news_id)
        return News(**row._mapping) if row is not None else None

    def get_news_by_slug(self, slug: str, exclude_id: int | None = None) -> News | None:
        row = self._get_by_slug(_news, slug, exclude_id)
        return News(**row._mapping) if row is not None else None

    def create_news(self, news: News) -> int:
        values = _insert_values(news)
        values["published_at"] = now_iso() if news.is_published else None
        return self._insert(_news, values)

    def update_news(self, news_id: int, **fields: Any) -> bool:
        return self._update(_news, news_id, fields)

    def delete_news(self, news_id: int) -> bool:
        return self._delete(_news, news_id)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def list_jobs(self) -> list[Job]:
        return [Job(**row._mapping) for row in self._list(_jobs, _jobs.c.created_at.desc(), _jobs.c.id.desc())]

    def get_job(self, job_id: int) -> Job | None:
        row = self._get(_jobs, job_id)
        return Job(**row._mapping) if row is not None else None

    def get_job_by_slug(self, slug: str, exclude_id: int | None = None) -> Job | None:
        row = self._get_by_slug(_jobs, slug, exclude_id)
        return Job(**row._mapping) if row is not None else None

    def create_job(self, job: Job) -> int:
        values = _insert_values(job)
        values["published_at"] = now_iso() if job.is_published else None
        return self._insert(_jobs, values)

    def update_job(self, job_id: int, **fields: Any) -> bool:
        return self._update(_jobs, job_id, fields)

    def delete_job(self, job_id: int) -> bool:
        return self._delete(_jobs, job_id)

    # ------------------------------------------------------------------
    # Publish toggle (NEWS and jobs)
    # ------------------------------------------------------------------

    def set_news_published(self, news_id: int, is_published: bool) -> bool:
        return self._update(_news, news_id, {"is_published": is_published})

    def set_job_published(self, job_id: int, is_published: bool) -> bool:
        return self._update(_jobs, job_id, {"is_published": is_published})

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> list[NewsCategory]:
        rows = self._list(_categories, _categories.c.sort_order, _categories.c.name)
        return [NewsCategory(**row._mapping) for row in rows]

    def get_category(self, category_id: int) -> NewsCategory | None:
        row = self._get(_categories, category_id)
        return NewsCategory(**row._mapping) if row is not None else None

    def create_category(self, category: NewsCategory) -> int:
        return self._insert(_categories, _insert_values(category))

    def update_category(self, category_id: int, **fields: Any) -> bool:
        return self._update(_categories, category_id, fields)

    def delete_category(self, category_id: int) -> bool:
        return self._delete(_categories, category_id)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Shared statement helpers
    # ------------------------------------------------------------------

    def _list(self, table: Table, *order_by) -> list:
        with translate_errors(f"list {table.name}"), self.engine.connect() as conn:
            return conn.execute(table.select().order_by(*order_by)).fetchall()

    def _get(self, table: Table, row_id: int):
        with translate_errors(f"get {table.name}"), self.engine.connect() as conn:
            return conn.execute(table.select().where(table.c.id == row_id)).fetchone()

    def _get_by_slug(self, table: Table, slug: str, exclude_id: int | None):
        query = table.select().where(table.c.slug == slug)
        if exclude_id is not None:
            query = query.where(table.c.id != exclude_id)
        with translate_errors(f"get {table.name} by slug"), self.engine.connect() as conn:
            return conn.execute(query).fetchone()

    def _insert(self, table: Table, values: dict) -> int:
        now = now_iso()
        with translate_errors(f"insert {table.name}"), self.engine.connect() as conn:
            result = conn.execute(table.insert().values(**values, created_at=now, updated_at=now))
            conn.commit()
            return result.inserted_primary_key[0]

    def _update(self, table: Table, row_id: int, fields: dict) -> bool:
        """Apply fields to one row. Returns False if the row does not exist.

        When is_published is among the fields and differs from the stored value,
        published_at is stamped (publish) or cleared (unpublish).
        """
        fields = {k: v for k, v in fields.items() if k not in _SERVER_MANAGED}
        if not fields:
            return self._get(table, row_id) is not None

        with translate_errors(f"update {table.name}"), self.engine.connect() as conn:
            if "is_published" in fields and "is_published" in table.c:
                current = conn.execute(select(table.c.is_published).where(table.c.id == row_id)).fetchone()
                if current is None:
                    return False
                if bool(current.is_published) != bool(fields["is_published"]):
                    fields["published_at"] = now_iso() if fields["is_published"] else None
            fields["updated_at"] = now_iso()
            result = conn.execute(table.update().where(table.c.id == row_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def _delete(self, table: Table, row_id: int) -> bool:
        with translate_errors(f"delete {table.name}"), self.engine.connect() as conn:
            result = conn.execute(table.delete().where(table.c.id == row_id))
            conn.commit()
        return result.rowcount > 0


def _insert_values(entity) -> dict:
    return {k: v for k, v in asdict(entity).items() if k not in _SERVER_MANAGED}
