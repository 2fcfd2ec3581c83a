"""Markdown + YAML frontmatter handling for content archives.

A content file looks like::

    ---
    title: "Hello"
    slug: "hello"
    locale: "EN"
    status: "PUBLISHED"
    ---

    Body markdown.

``parse_markdown`` splits the header from the body, ``validate_entry`` turns
the loose header mapping into a typed ``ParsedEntry`` and ``render_markdown``
writes the same layout back out.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any

import yaml

from content_errors import EntryValidationError
from models import PostLocale, PostStatus

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n(.*))?\Z", re.DOTALL)
INVALID_SLUG_PATTERN = re.compile(r"[\s/\\?#]")

KNOWN_KEYS = (
    "title",
    "date",
    "slug",
    "locale",
    "groupId",
    "tags",
    "status",
    "excerpt",
    "cover",
    "author",
    "publishedAt",
)


@dataclass
class ParsedEntry:
    filename: str
    title: str
    locale: PostLocale
    status: PostStatus
    body: str
    slug: str | None = None
    group_id: str | None = None
    tags: list[str] = field(default_factory=list)
    date: str | None = None
    published_at: str | None = None
    excerpt: str | None = None
    cover: str | None = None
    author: str | None = None
    warnings: list[str] = field(default_factory=list)


def parse_markdown(text: str) -> tuple[dict[str, Any], str]:
    normalized = text.replace("\r\n", "\n").lstrip("\ufeff")
    match = FRONTMATTER_PATTERN.match(normalized)
    if not match:
        raise EntryValidationError("Markdown 格式无效：缺少 --- 包围的 frontmatter")

    header, body = match.group(1), match.group(2) or ""
    try:
        frontmatter = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        raise EntryValidationError(f"frontmatter YAML 解析失败：{exc}") from exc

    if frontmatter is None:
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        raise EntryValidationError("frontmatter 必须是键值对")
    return frontmatter, body.strip()


def render_markdown(frontmatter: dict[str, Any], body: str) -> str:
    header = yaml.safe_dump(
        frontmatter,
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
    )
    return f"---\n{header}---\n\n{body}\n"


def parse_timestamp(value: Any) -> str | None:
    """Normalize a frontmatter date value to an ISO-8601 UTC string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError(f"无效的日期格式：{value}") from exc
    else:
        raise ValueError(f"无效的日期格式：{value}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc).isoformat()
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"日期超出范围：{value}") from exc


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ValueError("必须是字符串")
    text = str(value).strip()
    return text or None


def _parse_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if not isinstance(value, list):
        raise ValueError("tags 必须是数组")
    tags: list[str] = []
    for item in value:
        if isinstance(item, (dict, list)) or item is None:
            raise ValueError("tags 只能包含字符串")
        text = str(item).strip()
        if "," in text:
            raise ValueError(f"tag 不能包含逗号：{text}")
        if text:
            tags.append(text)
    return tags


def validate_entry(filename: str, frontmatter: dict[str, Any], body: str) -> ParsedEntry:
    errors: list[str] = []

    title = ""
    raw_title = frontmatter.get("title")
    if isinstance(raw_title, str) and raw_title.strip():
        title = raw_title.strip()
    elif raw_title is None or raw_title == "":
        errors.append("缺少必填字段：title")
    else:
        errors.append("title 必须是非空字符串")

    locale: PostLocale | None = None
    raw_locale = frontmatter.get("locale")
    if raw_locale is None or raw_locale == "":
        errors.append("缺少必填字段：locale")
    else:
        try:
            locale = PostLocale(str(raw_locale).strip().upper())
        except ValueError:
            errors.append(f"无效的 locale：{raw_locale}，仅支持 EN 或 ZH")

    identity_errors: list[str] = []
    slug: str | None = None
    group_id: str | None = None
    try:
        slug = _optional_text(frontmatter.get("slug"))
    except ValueError:
        identity_errors.append("slug 必须是字符串")
    if slug and INVALID_SLUG_PATTERN.search(slug):
        identity_errors.append(f"无效的 slug：{slug}")
    try:
        group_id = _optional_text(frontmatter.get("groupId"))
    except ValueError:
        identity_errors.append("groupId 必须是字符串")
    if not identity_errors and not slug and not group_id:
        identity_errors.append("缺少必填字段：slug 或 groupId 至少提供一个")
    errors.extend(identity_errors)

    status = PostStatus.DRAFT
    raw_status = frontmatter.get("status")
    if raw_status not in (None, ""):
        try:
            status = PostStatus(str(raw_status).strip().upper())
        except ValueError:
            errors.append(f"无效的 status：{raw_status}，仅支持 PUBLISHED 或 DRAFT")

    tags: list[str] = []
    try:
        tags = _parse_tags(frontmatter.get("tags"))
    except ValueError as exc:
        errors.append(str(exc))

    timestamps: dict[str, str | None] = {}
    for key in ("date", "publishedAt"):
        try:
            timestamps[key] = parse_timestamp(frontmatter.get(key))
        except ValueError as exc:
            errors.append(f"{key}: {exc}")

    optional: dict[str, str | None] = {}
    for key in ("excerpt", "cover", "author"):
        try:
            optional[key] = _optional_text(frontmatter.get(key))
        except ValueError as exc:
            errors.append(f"{key} {exc}")

    if errors:
        raise EntryValidationError(f"frontmatter 无效：{'；'.join(errors)}", errors)

    warnings = [
        f"忽略未知字段：{key}" for key in frontmatter if key not in KNOWN_KEYS
    ]

    return ParsedEntry(
        filename=filename,
        title=title,
        locale=locale,
        status=status,
        body=body,
        slug=slug,
        group_id=group_id,
        tags=tags,
        date=timestamps.get("date"),
        published_at=timestamps.get("publishedAt"),
        excerpt=optional.get("excerpt"),
        cover=optional.get("cover"),
        author=optional.get("author"),
        warnings=warnings,
    )


def parse_entry(filename: str, text: str) -> ParsedEntry:
    frontmatter, body = parse_markdown(text)
    return validate_entry(filename, frontmatter, body)
