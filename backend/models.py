import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Enum,
    Index,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.db_migrations import run_db_migrations
from app.core.settings import get_settings

Base = declarative_base()

settings = get_settings()
DATABASE_URL = settings.database_url

IS_SQLITE = DATABASE_URL.startswith("sqlite")
engine_connect_args = {}
if IS_SQLITE:
    engine_connect_args = {
        "check_same_thread": False,
        "timeout": max(settings.sqlite_busy_timeout_ms, 1000) / 1000,
    }

engine = create_engine(DATABASE_URL, connect_args=engine_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


if IS_SQLITE:

    @event.listens_for(engine, "connect")
    def _apply_sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        try:
            if settings.sqlite_wal_enabled:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA synchronous={settings.sqlite_synchronous.upper()}")
            cursor.execute(f"PRAGMA busy_timeout={settings.sqlite_busy_timeout_ms}")
            cursor.execute(f"PRAGMA temp_store={settings.sqlite_temp_store}")
        finally:
            cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def generate_uuid():
    return str(uuid.uuid4())


def now_str():
    return datetime.now(timezone.utc).isoformat()


class PostLocale(str, enum.Enum):
    EN = "EN"
    ZH = "ZH"


class PostStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        UniqueConstraint("locale", "slug", name="uq_posts_locale_slug"),
        UniqueConstraint("group_id", "locale", name="uq_posts_group_locale"),
        Index("ix_posts_created_at", "created_at"),
        Index("ix_posts_status_locale", "status", "locale"),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, index=True)
    locale = Column(
        Enum(PostLocale, name="post_locale", native_enum=False),
        nullable=False,
        default=PostLocale.EN,
    )
    group_id = Column(String, nullable=True, index=True)  # 同一内容不同语言版本共享
    content = Column(Text, nullable=False, default="")
    excerpt = Column(Text, nullable=True)
    status = Column(
        Enum(PostStatus, name="post_status", native_enum=False),
        nullable=False,
        default=PostStatus.DRAFT,
    )
    tags = Column(String, nullable=True)  # 逗号分隔
    cover_image_path = Column(String, nullable=True)
    author_id = Column(String, nullable=True)
    created_at = Column(String, default=now_str)
    updated_at = Column(String, default=now_str)
    published_at = Column(String, nullable=True)


def parse_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def serialize_tags(tags: list[str] | None) -> str | None:
    if not tags:
        return None
    cleaned = [str(tag).strip() for tag in tags if str(tag).strip()]
    return ",".join(cleaned) if cleaned else None


def init_db():
    run_db_migrations(DATABASE_URL)
