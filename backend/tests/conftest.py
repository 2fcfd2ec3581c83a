from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Callable, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.domain.content_store import SqlAlchemyContentStore
from models import Base, Post, PostLocale, PostStatus, generate_uuid, now_str

DEFAULT_MANIFEST = {
    "exportDate": "2026-01-01T00:00:00+00:00",
    "exportVersion": "1.0",
    "stats": {"totalPosts": 0, "postsByLocale": {"EN": 0, "ZH": 0}},
}


@pytest.fixture()
def db_session(tmp_path) -> Iterator[Session]:
    db_path = tmp_path / "unit-tests.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    testing_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    session = testing_session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def store(db_session: Session) -> SqlAlchemyContentStore:
    return SqlAlchemyContentStore(db_session)


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    def _make_post(**overrides) -> Post:
        payload = {
            "id": generate_uuid(),
            "title": "Existing Post",
            "slug": "existing-post",
            "locale": PostLocale.EN,
            "group_id": None,
            "content": "Existing content",
            "excerpt": None,
            "status": PostStatus.PUBLISHED,
            "tags": None,
            "author_id": "author-1",
            "created_at": now_str(),
            "updated_at": now_str(),
            "published_at": None,
        }
        payload.update(overrides)
        post = Post(**payload)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


def _post_markdown(body: str = "Imported body.", **frontmatter) -> str:
    lines = ["---"]
    for key, value in frontmatter.items():
        if isinstance(value, list):
            if not value:
                lines.append(f"{key}: []")
                continue
            lines.append(f"{key}:")
            lines.extend(f"  - {json.dumps(item, ensure_ascii=False)}" for item in value)
        else:
            lines.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
    lines.append("---")
    return "\n".join(lines) + f"\n\n{body}\n"


@pytest.fixture()
def make_markdown() -> Callable[..., str]:
    return _post_markdown


@pytest.fixture()
def make_archive() -> Callable[..., bytes]:
    def _make_archive(files: dict[str, str], manifest: dict | None = DEFAULT_MANIFEST) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            if manifest is not None:
                zf.writestr("manifest.json", json.dumps(manifest))
            for path, content in files.items():
                zf.writestr(path, content)
        return buffer.getvalue()

    return _make_archive
