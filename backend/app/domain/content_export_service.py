from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from app.domain.content_archive import (
    EXPORT_VERSION,
    ArchiveFile,
    build_archive,
    content_path,
    cover_to_archive_path,
)
from app.domain.content_frontmatter import render_markdown
from app.domain.content_store import ContentStore, ExportFilter
from models import Post, PostLocale, parse_tags

logger = logging.getLogger("content_export")

MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")


def _enum_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


def build_frontmatter(post: Post) -> dict[str, Any]:
    frontmatter: dict[str, Any] = {
        "title": post.title,
        "date": post.created_at,
        "slug": post.slug,
        "locale": _enum_value(post.locale),
        "groupId": post.group_id,
        "tags": parse_tags(post.tags),
        "status": _enum_value(post.status),
    }
    if post.excerpt:
        frontmatter["excerpt"] = post.excerpt
    cover = cover_to_archive_path(post.cover_image_path)
    if cover:
        frontmatter["cover"] = cover
    if post.author_id:
        frontmatter["author"] = post.author_id
    if post.published_at:
        frontmatter["publishedAt"] = post.published_at
    return frontmatter


def collect_asset_references(post: Post) -> set[str]:
    assets: set[str] = set()
    if post.cover_image_path:
        assets.add(post.cover_image_path)
    for url in MARKDOWN_IMAGE_PATTERN.findall(post.content or ""):
        assets.add(url)
    return assets


class ContentExportService:
    def __init__(self, store: ContentStore, export_version: str = EXPORT_VERSION):
        self.store = store
        self.export_version = export_version

    def export_content(self, export_filter: ExportFilter | None = None) -> bytes:
        export_filter = export_filter or ExportFilter()
        posts = self.store.query_by_filter(export_filter)

        files: list[ArchiveFile] = []
        assets: set[str] = set()
        posts_by_locale = {locale.value: 0 for locale in PostLocale}
        for post in posts:
            locale = _enum_value(post.locale)
            files.append(
                ArchiveFile(
                    path=content_path(locale, post.slug),
                    content=render_markdown(build_frontmatter(post), post.content or ""),
                )
            )
            posts_by_locale[locale] = posts_by_locale.get(locale, 0) + 1
            assets.update(collect_asset_references(post))

        manifest = {
            "exportDate": datetime.now(timezone.utc).isoformat(),
            "exportVersion": self.export_version,
            "filters": export_filter.to_manifest(),
            "stats": {
                "totalPosts": len(posts),
                "postsByLocale": posts_by_locale,
                "totalAssets": len(assets),
            },
        }

        logger.info(
            "content_export_finished: total=%s assets=%s",
            len(posts),
            len(assets),
        )
        return build_archive(manifest, files)
