from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.domain.content_archive import (
    EXPORT_VERSION,
    ArchiveFile,
    cover_to_site_path,
    open_archive,
)
from app.domain.content_frontmatter import ParsedEntry, parse_entry
from app.domain.content_identity import IdentityMatch, IdentityResolver, SlugAllocator
from app.domain.content_store import ContentStore
from content_errors import (
    ContentEngineError,
    EntryValidationError,
    StoreConstraintError,
    normalize_store_error,
)
from models import Post, PostStatus, now_str, serialize_tags

logger = logging.getLogger("content_import")

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"
ACTION_SKIPPED = "skipped"
ACTION_ERROR = "error"

SUMMARY_KEYS = {
    ACTION_CREATED: "created",
    ACTION_UPDATED: "updated",
    ACTION_SKIPPED: "skipped",
    ACTION_ERROR: "errors",
}

NO_MARKDOWN_FILENAME = "N/A"


def _new_summary() -> dict[str, int]:
    return {"created": 0, "updated": 0, "skipped": 0, "errors": 0}


@dataclass
class ImportDetail:
    filename: str
    action: str
    post: dict[str, str] | None = None
    error: str | None = None
    match_key: str | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"filename": self.filename, "action": self.action}
        if self.post is not None:
            payload["post"] = self.post
        if self.error is not None:
            payload["error"] = self.error
        if self.match_key is not None:
            payload["matchKey"] = self.match_key
        if self.warnings:
            payload["warnings"] = self.warnings
        return payload


@dataclass
class ImportResult:
    dry_run: bool
    summary: dict[str, int] = field(default_factory=_new_summary)
    details: list[ImportDetail] = field(default_factory=list)

    def record(self, detail: ImportDetail) -> None:
        self.details.append(detail)
        self.summary[SUMMARY_KEYS[detail.action]] += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "dryRun": self.dry_run,
            "summary": dict(self.summary),
            "details": [item.to_dict() for item in self.details],
        }


def _post_summary(entry: ParsedEntry, slug: str) -> dict[str, str]:
    return {
        "title": entry.title,
        "slug": slug,
        "locale": entry.locale.value,
        "status": entry.status.value,
    }


def resolve_published_at(entry: ParsedEntry, existing: str | None = None) -> str | None:
    if entry.status != PostStatus.PUBLISHED:
        return None
    return entry.published_at or entry.date or existing or now_str()


class ContentImportService:
    """Apply (or preview) a content archive against a ``ContentStore``.

    Entries are handled one by one in archive order: a later entry must see
    what an earlier one wrote, so the loop is never batched or parallelized.
    Only an unreadable archive raises; everything else becomes a detail row.
    """

    def __init__(self, store: ContentStore, export_version: str = EXPORT_VERSION):
        self.store = store
        self.export_version = export_version
        self.resolver = IdentityResolver(store)
        self.allocator = SlugAllocator(store)

    def import_content(
        self,
        archive_bytes: bytes,
        *,
        dry_run: bool,
        admin_id: str,
    ) -> ImportResult:
        archive = open_archive(archive_bytes)
        self._check_manifest(archive.manifest)

        result = ImportResult(dry_run=dry_run)
        markdown_files = archive.markdown_files()
        if not markdown_files:
            result.record(
                ImportDetail(
                    filename=NO_MARKDOWN_FILENAME,
                    action=ACTION_ERROR,
                    error="压缩包中没有 Markdown 文件",
                )
            )
            return result

        for item in markdown_files:
            result.record(self._import_file(item, dry_run=dry_run, admin_id=admin_id))

        logger.info(
            "content_import_finished: dry_run=%s created=%s updated=%s errors=%s",
            dry_run,
            result.summary["created"],
            result.summary["updated"],
            result.summary["errors"],
        )
        return result

    def _check_manifest(self, manifest: dict[str, Any]) -> None:
        version = str(manifest.get("exportVersion") or "").strip()
        if version and version != self.export_version:
            logger.warning(
                "content_import_version_mismatch: archive=%s expected=%s",
                version,
                self.export_version,
            )

    def _import_file(self, item: ArchiveFile, *, dry_run: bool, admin_id: str) -> ImportDetail:
        if item.decode_error:
            return ImportDetail(filename=item.path, action=ACTION_ERROR, error=item.decode_error)

        try:
            entry = parse_entry(item.path, item.content)
        except EntryValidationError as exc:
            return ImportDetail(filename=item.path, action=ACTION_ERROR, error=exc.message)
        except Exception as exc:
            return self._unexpected_failure(item.path, exc)

        try:
            match = self.resolver.resolve(entry)
            if match.found:
                return self._apply_update(entry, match, dry_run=dry_run)
            return self._apply_create(entry, dry_run=dry_run, admin_id=admin_id)
        except ContentEngineError as exc:
            logger.warning("content_import_entry_failed: %s %s", item.path, exc.message)
            return ImportDetail(filename=item.path, action=ACTION_ERROR, error=exc.message)
        except SQLAlchemyError as exc:
            error = normalize_store_error(exc)
            logger.warning("content_import_entry_failed: %s %s", item.path, error.message)
            return ImportDetail(filename=item.path, action=ACTION_ERROR, error=error.message)
        except Exception as exc:
            return self._unexpected_failure(item.path, exc)

    def _unexpected_failure(self, filename: str, exc: Exception) -> ImportDetail:
        logger.exception("content_import_entry_crashed: %s", filename)
        return ImportDetail(filename=filename, action=ACTION_ERROR, error=f"导入失败：{str(exc)}")

    def _apply_update(
        self,
        entry: ParsedEntry,
        match: IdentityMatch,
        *,
        dry_run: bool,
    ) -> ImportDetail:
        target: Post = match.target
        slug = entry.slug or target.slug
        if slug != target.slug:
            holder = self.store.find_by_locale_and_slug(entry.locale, slug)
            if holder is not None and holder.id != target.id:
                raise StoreConstraintError(f"唯一键冲突(locale+slug)：{slug} 已被其他文章使用")

        if not dry_run:
            self.store.update(
                target.id,
                {
                    "title": entry.title,
                    "slug": slug,
                    "content": entry.body,
                    "excerpt": entry.excerpt,
                    "tags": serialize_tags(entry.tags),
                    "status": entry.status,
                    "cover_image_path": cover_to_site_path(entry.cover),
                    "published_at": resolve_published_at(entry, target.published_at),
                },
            )

        return ImportDetail(
            filename=entry.filename,
            action=ACTION_UPDATED,
            post=_post_summary(entry, slug),
            match_key=match.match_key,
            warnings=list(entry.warnings),
        )

    def _apply_create(self, entry: ParsedEntry, *, dry_run: bool, admin_id: str) -> ImportDetail:
        warnings = list(entry.warnings)
        base_slug, generated = self.allocator.base_slug_for(entry)
        slug = self.allocator.allocate(base_slug, entry.locale)
        if generated:
            warnings.append(f"未提供 slug，已根据标题生成：{base_slug}")
        if slug != base_slug:
            warnings.append(f"slug 冲突，已改为：{slug}")

        if not dry_run:
            fields: dict[str, Any] = {
                "title": entry.title,
                "slug": slug,
                "locale": entry.locale,
                "group_id": entry.group_id,
                "content": entry.body,
                "excerpt": entry.excerpt,
                "tags": serialize_tags(entry.tags),
                "status": entry.status,
                "cover_image_path": cover_to_site_path(entry.cover),
                "author_id": entry.author or admin_id,
                "published_at": resolve_published_at(entry),
            }
            if entry.date:
                fields["created_at"] = entry.date
            self.store.create(fields)

        return ImportDetail(
            filename=entry.filename,
            action=ACTION_CREATED,
            post=_post_summary(entry, slug),
            warnings=warnings,
        )
