import io
import json
import zipfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.domain.content_export_service import (
    ContentExportService,
    build_frontmatter,
    collect_asset_references,
)
from app.domain.content_import_service import ContentImportService
from app.domain.content_store import ExportFilter, SqlAlchemyContentStore
from models import Base, Post, PostLocale, PostStatus


def read_export(data: bytes) -> tuple[dict, dict[str, str]]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        manifest = json.loads(zf.read("manifest.json"))
        files = {
            name: zf.read(name).decode("utf-8")
            for name in zf.namelist()
            if name != "manifest.json"
        }
    return manifest, files


@pytest.fixture()
def seeded(make_post):
    make_post(
        slug="old-en",
        created_at="2024-01-10T00:00:00+00:00",
        published_at="2024-01-15T09:00:00+00:00",
    )
    make_post(
        slug="mid-zh",
        locale=PostLocale.ZH,
        title="中文",
        created_at="2024-02-10T00:00:00+00:00",
        published_at="2024-02-10T23:30:00+00:00",
    )
    make_post(
        slug="draft-en",
        status=PostStatus.DRAFT,
        created_at="2024-03-05T00:00:00+00:00",
    )


def test_export_writes_manifest_and_one_file_per_post(store, seeded):
    manifest, files = read_export(ContentExportService(store).export_content())

    assert manifest["exportVersion"] == "1.0"
    assert manifest["filters"] == {}
    assert manifest["stats"]["totalPosts"] == 3
    assert manifest["stats"]["postsByLocale"] == {"EN": 2, "ZH": 1}
    assert sorted(files) == ["content/en/draft-en.md", "content/en/old-en.md", "content/zh/mid-zh.md"]


def test_export_filters_by_status_and_locale(store, seeded):
    export_filter = ExportFilter(statuses=[PostStatus.PUBLISHED], locales=[PostLocale.EN])
    manifest, files = read_export(ContentExportService(store).export_content(export_filter))

    assert list(files) == ["content/en/old-en.md"]
    assert manifest["filters"] == {"statuses": ["PUBLISHED"], "locales": ["EN"]}


def test_export_date_range_uses_published_date_and_inclusive_day(store, seeded):
    export_filter = ExportFilter(from_date="2024-01-12", to_date="2024-02-10")
    _, files = read_export(ContentExportService(store).export_content(export_filter))

    assert sorted(files) == ["content/en/old-en.md", "content/zh/mid-zh.md"]


def test_query_by_filter_orders_newest_first(store, seeded):
    posts = store.query_by_filter(ExportFilter())
    assert [post.slug for post in posts] == ["draft-en", "mid-zh", "old-en"]


def test_query_by_filter_rejects_invalid_dates(store):
    with pytest.raises(ValueError):
        store.query_by_filter(ExportFilter(from_date="not-a-date"))
    with pytest.raises(ValueError):
        store.query_by_filter(ExportFilter(from_date="0001-01-01T00:00:00+05:00"))


def test_query_by_filter_accepts_last_representable_day(store, seeded):
    assert len(store.query_by_filter(ExportFilter(to_date="9999-12-31"))) == 3


def test_empty_export_still_has_manifest(store):
    manifest, files = read_export(ContentExportService(store).export_content())

    assert files == {}
    assert manifest["stats"]["totalPosts"] == 0
    assert manifest["stats"]["totalAssets"] == 0


def test_build_frontmatter_omits_unset_optional_fields():
    post = Post(
        title="T",
        slug="t",
        locale=PostLocale.EN,
        group_id=None,
        status=PostStatus.DRAFT,
        tags="a,b",
        created_at="2024-01-01T00:00:00+00:00",
        cover_image_path="/uploads/c.png",
        author_id=None,
        excerpt=None,
        published_at=None,
    )

    assert build_frontmatter(post) == {
        "title": "T",
        "date": "2024-01-01T00:00:00+00:00",
        "slug": "t",
        "locale": "EN",
        "groupId": None,
        "tags": ["a", "b"],
        "status": "DRAFT",
        "cover": "../uploads/c.png",
    }


def test_collect_asset_references_includes_cover_and_inline_images():
    post = Post(
        cover_image_path="/uploads/cover.png",
        content='![a](/uploads/a.png) text ![b](/uploads/b.png "B") ![again](/uploads/a.png)',
    )
    assert collect_asset_references(post) == {"/uploads/cover.png", "/uploads/a.png", "/uploads/b.png"}


def test_round_trip_into_empty_store(store, make_post, tmp_path):
    make_post(
        slug="round-trip",
        group_id="g-rt",
        title="Round Trip",
        content="Body with ![img](/uploads/x.png)",
        tags="x,y",
        excerpt="Sum",
        cover_image_path="/uploads/cover.png",
        published_at="2024-04-01T00:00:00+00:00",
    )
    archive = ContentExportService(store).export_content()

    engine = create_engine(f"sqlite:///{tmp_path / 'target.db'}")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        target = SqlAlchemyContentStore(session)
        result = ContentImportService(target).import_content(archive, dry_run=False, admin_id="admin-1")
        assert result.summary["created"] == 1

        copy = target.find_by_locale_and_slug(PostLocale.EN, "round-trip")
        assert copy.group_id == "g-rt"
        assert copy.title == "Round Trip"
        assert copy.content == "Body with ![img](/uploads/x.png)"
        assert copy.tags == "x,y"
        assert copy.excerpt == "Sum"
        assert copy.cover_image_path == "/uploads/cover.png"
        assert copy.published_at == "2024-04-01T00:00:00+00:00"
        assert copy.author_id == "author-1"
    finally:
        session.close()
        engine.dispose()
