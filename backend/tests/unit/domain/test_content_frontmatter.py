import datetime as dt

import pytest

from app.domain.content_frontmatter import (
    parse_entry,
    parse_markdown,
    parse_timestamp,
    render_markdown,
    validate_entry,
)
from content_errors import EntryValidationError
from models import PostLocale, PostStatus


def test_parse_markdown_splits_header_and_body():
    frontmatter, body = parse_markdown('\ufeff---\r\ntitle: "Hi"\r\n---\r\n\r\n# Heading\r\n\r\nText\r\n')

    assert frontmatter == {"title": "Hi"}
    assert body == "# Heading\n\nText"


def test_parse_markdown_allows_empty_body():
    frontmatter, body = parse_markdown("---\ntitle: Hi\n---")
    assert frontmatter == {"title": "Hi"}
    assert body == ""


@pytest.mark.parametrize(
    "text",
    [
        "no frontmatter here",
        "---\ntitle: [unclosed\n---\nbody",
        "---\n- a\n- b\n---\nbody",
    ],
)
def test_parse_markdown_rejects_malformed_input(text):
    with pytest.raises(EntryValidationError):
        parse_markdown(text)


def test_render_markdown_keeps_key_order_and_unicode():
    text = render_markdown({"title": "你好", "slug": "ni-hao", "tags": ["a"]}, "正文")

    assert text.startswith("---\ntitle: 你好\nslug: ni-hao\ntags:\n- a\n---\n\n正文")
    assert parse_markdown(text) == ({"title": "你好", "slug": "ni-hao", "tags": ["a"]}, "正文")


def test_parse_timestamp_normalizes_to_utc():
    assert parse_timestamp("2024-05-01T10:00:00Z") == "2024-05-01T10:00:00+00:00"
    assert parse_timestamp("2024-05-01T18:00:00+08:00") == "2024-05-01T10:00:00+00:00"
    assert parse_timestamp(dt.date(2024, 5, 1)) == "2024-05-01T00:00:00+00:00"
    assert parse_timestamp("") is None
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")
    with pytest.raises(ValueError, match="日期超出范围"):
        parse_timestamp("0001-01-01T00:00:00+05:00")


def test_validate_entry_normalizes_values():
    entry = validate_entry(
        "content/zh/a.md",
        {
            "title": "  标题 ",
            "locale": "zh",
            "slug": "a",
            "status": "published",
            "tags": "one, two,,",
            "extra": 1,
        },
        "body",
    )

    assert entry.title == "标题"
    assert entry.locale == PostLocale.ZH
    assert entry.status == PostStatus.PUBLISHED
    assert entry.tags == ["one", "two"]
    assert entry.warnings == ["忽略未知字段：extra"]


def test_validate_entry_defaults_status_to_draft_and_accepts_group_only():
    entry = validate_entry("a.md", {"title": "T", "locale": "EN", "groupId": "g"}, "")
    assert entry.status == PostStatus.DRAFT
    assert entry.slug is None
    assert entry.group_id == "g"


def test_validate_entry_collects_every_error():
    with pytest.raises(EntryValidationError) as exc_info:
        validate_entry(
            "a.md",
            {"locale": "FR", "status": "ARCHIVED", "tags": {"a": 1}, "date": "soon"},
            "",
        )

    errors = exc_info.value.errors
    assert "缺少必填字段：title" in errors
    assert any("无效的 locale：FR" in item for item in errors)
    assert "缺少必填字段：slug 或 groupId 至少提供一个" in errors
    assert any("无效的 status：ARCHIVED" in item for item in errors)
    assert "tags 必须是数组" in errors
    assert any(item.startswith("date:") for item in errors)


@pytest.mark.parametrize("slug", ["has space", "a/b", "what?", "x#y"])
def test_validate_entry_rejects_unsafe_slugs(slug):
    with pytest.raises(EntryValidationError) as exc_info:
        validate_entry("a.md", {"title": "T", "locale": "EN", "slug": slug}, "")
    assert exc_info.value.errors == [f"无效的 slug：{slug}"]


def test_parse_entry_reads_yaml_dates():
    entry = parse_entry(
        "a.md",
        "---\ntitle: T\nlocale: EN\nslug: t\ndate: 2024-02-03\npublishedAt: 2024-02-04T05:06:07Z\n---\nbody",
    )
    assert entry.date == "2024-02-03T00:00:00+00:00"
    assert entry.published_at == "2024-02-04T05:06:07+00:00"


def test_validate_entry_rejects_tag_containing_comma():
    with pytest.raises(EntryValidationError) as exc_info:
        validate_entry("a.md", {"title": "T", "locale": "EN", "slug": "t", "tags": ["a, b", "c"]}, "")
    assert exc_info.value.errors == ["tag 不能包含逗号：a, b"]
