from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BACKEND_DIR / ".env"

SQLITE_SYNCHRONOUS_MODES = {"OFF", "NORMAL", "FULL", "EXTRA"}
SQLITE_TEMP_STORE_MODES = {"DEFAULT", "FILE", "MEMORY"}


@dataclass(frozen=True)
class SecuritySettings:
    internal_api_token: str
    admin_jwt_secret: str


@dataclass(frozen=True)
class ContentSettings:
    export_version: str
    import_max_bytes: int
    default_author_id: str


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./data/content.db", alias="DATABASE_URL")
    internal_api_token: str = Field(default="", alias="INTERNAL_API_TOKEN")
    admin_jwt_secret: str = Field(default="", alias="ADMIN_JWT_SECRET")

    allowed_origins: str = Field(default="", alias="ALLOWED_ORIGINS")

    sqlite_busy_timeout_ms: int = Field(default=5000, alias="SQLITE_BUSY_TIMEOUT_MS")
    sqlite_wal_enabled: bool = Field(default=True, alias="SQLITE_WAL_ENABLED")
    sqlite_synchronous: str = Field(default="NORMAL", alias="SQLITE_SYNCHRONOUS")
    sqlite_temp_store: str = Field(default="MEMORY", alias="SQLITE_TEMP_STORE")

    content_export_version: str = Field(default="1.0", alias="CONTENT_EXPORT_VERSION")
    content_import_max_bytes: int = Field(
        default=50 * 1024 * 1024, alias="CONTENT_IMPORT_MAX_BYTES"
    )
    content_default_author_id: str = Field(default="admin", alias="CONTENT_DEFAULT_AUTHOR_ID")

    @property
    def security(self) -> SecuritySettings:
        return SecuritySettings(
            internal_api_token=self.internal_api_token.strip(),
            admin_jwt_secret=self.admin_jwt_secret.strip(),
        )

    @property
    def content(self) -> ContentSettings:
        return ContentSettings(
            export_version=self.content_export_version.strip(),
            import_max_bytes=self.content_import_max_bytes,
            default_author_id=self.content_default_author_id.strip(),
        )

    @property
    def cors_allow_origins(self) -> list[str]:
        raw = self.allowed_origins.strip()
        if not raw:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        if raw == "*":
            return ["*"]

        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                return [str(origin).strip() for origin in parsed if str(origin).strip()]

        return [origin.strip() for origin in raw.split(",") if origin.strip()]


def validate_startup_settings(settings: AppSettings) -> None:
    errors: list[str] = []

    if not settings.database_url.strip():
        errors.append("DATABASE_URL 不能为空")

    security = settings.security
    if not security.internal_api_token and not security.admin_jwt_secret:
        errors.append("INTERNAL_API_TOKEN 与 ADMIN_JWT_SECRET 至少配置一个")

    if settings.sqlite_busy_timeout_ms <= 0:
        errors.append("SQLITE_BUSY_TIMEOUT_MS 必须大于 0")
    if settings.sqlite_synchronous.strip().upper() not in SQLITE_SYNCHRONOUS_MODES:
        errors.append("SQLITE_SYNCHRONOUS 仅支持 OFF/NORMAL/FULL/EXTRA")
    if settings.sqlite_temp_store.strip().upper() not in SQLITE_TEMP_STORE_MODES:
        errors.append("SQLITE_TEMP_STORE 仅支持 DEFAULT/FILE/MEMORY")

    content = settings.content
    if not content.export_version:
        errors.append("CONTENT_EXPORT_VERSION 不能为空")
    if content.import_max_bytes <= 0:
        errors.append("CONTENT_IMPORT_MAX_BYTES 必须为正整数")
    if not content.default_author_id:
        errors.append("CONTENT_DEFAULT_AUTHOR_ID 不能为空")

    if errors:
        detail = "\n".join(f"- {item}" for item in errors)
        raise RuntimeError(f"启动配置校验失败:\n{detail}")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
