from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from content_errors import StoreConstraintError, normalize_store_error
from models import Post, PostLocale, PostStatus, generate_uuid, now_str

WRITABLE_FIELDS = (
    "title",
    "slug",
    "locale",
    "group_id",
    "content",
    "excerpt",
    "status",
    "tags",
    "cover_image_path",
    "author_id",
    "created_at",
    "published_at",
)


@dataclass
class ExportFilter:
    from_date: str | None = None
    to_date: str | None = None
    statuses: list[PostStatus] = field(default_factory=list)
    locales: list[PostLocale] = field(default_factory=list)

    def to_manifest(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.from_date:
            payload["from"] = self.from_date
        if self.to_date:
            payload["to"] = self.to_date
        if self.statuses:
            payload["statuses"] = [item.value for item in self.statuses]
        if self.locales:
            payload["locales"] = [item.value for item in self.locales]
        return payload


class ContentStore(Protocol):
    def find_by_group_and_locale(self, group_id: str, locale: PostLocale) -> Post | None: ...

    def find_by_locale_and_slug(self, locale: PostLocale, slug: str) -> Post | None: ...

    def create(self, fields: dict[str, Any]) -> Post: ...

    def update(self, post_id: str, fields: dict[str, Any]) -> Post: ...

    def query_by_filter(self, export_filter: ExportFilter) -> list[Post]: ...


def normalize_start_bound(value: str | None) -> str | None:
    raw = (value or "").strip()
    if not raw:
        return None
    parsed = _parse_bound(raw)
    if parsed is None:
        raise ValueError(f"无效的开始日期：{raw}")
    if len(raw) == 10:
        return parsed.strftime("%Y-%m-%d")
    return parsed.isoformat()


def normalize_end_bound(value: str | None) -> tuple[str, bool] | None:
    """Return ``(bound, inclusive)``; a date-only bound becomes the next day, exclusive."""
    raw = (value or "").strip()
    if not raw:
        return None
    parsed = _parse_bound(raw)
    if parsed is None:
        raise ValueError(f"无效的结束日期：{raw}")
    if len(raw) == 10:
        try:
            return (parsed + timedelta(days=1)).strftime("%Y-%m-%d"), False
        except OverflowError:
            return parsed.isoformat(), True
    return parsed.isoformat(), True


def _parse_bound(raw: str) -> datetime | None:
    candidate = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


class SqlAlchemyContentStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_group_and_locale(self, group_id: str, locale: PostLocale) -> Post | None:
        return (
            self.db.query(Post)
            .filter(Post.group_id == group_id, Post.locale == locale)
            .first()
        )

    def find_by_locale_and_slug(self, locale: PostLocale, slug: str) -> Post | None:
        return (
            self.db.query(Post)
            .filter(Post.locale == locale, Post.slug == slug)
            .first()
        )

    def create(self, fields: dict[str, Any]) -> Post:
        timestamp = now_str()
        post = Post(
            id=generate_uuid(),
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._assign(post, fields)
        self.db.add(post)
        return self._commit(post)

    def update(self, post_id: str, fields: dict[str, Any]) -> Post:
        post = self.db.query(Post).filter(Post.id == post_id).first()
        if post is None:
            raise StoreConstraintError(f"文章不存在：{post_id}")
        self._assign(post, fields)
        post.updated_at = now_str()
        return self._commit(post)

    def query_by_filter(self, export_filter: ExportFilter) -> list[Post]:
        query = self.db.query(Post)
        if export_filter.statuses:
            query = query.filter(Post.status.in_(export_filter.statuses))
        if export_filter.locales:
            query = query.filter(Post.locale.in_(export_filter.locales))

        effective_date = func.coalesce(Post.published_at, Post.created_at)
        start_bound = normalize_start_bound(export_filter.from_date)
        if start_bound:
            query = query.filter(effective_date >= start_bound)
        end_bound = normalize_end_bound(export_filter.to_date)
        if end_bound:
            bound, inclusive = end_bound
            if inclusive:
                query = query.filter(effective_date <= bound)
            else:
                query = query.filter(effective_date < bound)

        return query.order_by(Post.created_at.desc(), Post.id.asc()).all()

    def count(self) -> int:
        return self.db.query(func.count(Post.id)).scalar() or 0

    @staticmethod
    def _assign(post: Post, fields: dict[str, Any]) -> None:
        for name, value in fields.items():
            if name not in WRITABLE_FIELDS:
                raise ValueError(f"不支持写入字段：{name}")
            setattr(post, name, value)

    def _commit(self, post: Post) -> Post:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise normalize_store_error(exc) from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(post)
        return post
