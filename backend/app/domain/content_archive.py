from __future__ import annotations

import io
import json
import zipfile
from dataclasses import dataclass, field
from typing import Any

from content_errors import ArchiveCorruptError

MANIFEST_PATH = "manifest.json"
CONTENT_ROOT = "content"
EXPORT_VERSION = "1.0"
UPLOADS_SITE_PREFIX = "/uploads/"
UPLOADS_ARCHIVE_PREFIX = "../uploads/"


@dataclass(frozen=True)
class ArchiveFile:
    path: str
    content: str
    decode_error: str | None = None


@dataclass
class ContentArchive:
    manifest: dict[str, Any]
    files: list[ArchiveFile] = field(default_factory=list)

    def markdown_files(self) -> list[ArchiveFile]:
        return [item for item in self.files if item.path.lower().endswith(".md")]


def content_path(locale: str, slug: str) -> str:
    return f"{CONTENT_ROOT}/{locale.lower()}/{slug}.md"


def cover_to_archive_path(site_path: str | None) -> str | None:
    """
    站内上传路径转换为压缩包内相对路径

    示例：
        "/uploads/cover.jpg" -> "../uploads/cover.jpg"
        "https://cdn.example.com/a.jpg" -> 原样返回
    """
    value = (site_path or "").strip()
    if not value:
        return None
    if value.startswith(UPLOADS_SITE_PREFIX):
        return UPLOADS_ARCHIVE_PREFIX + value[len(UPLOADS_SITE_PREFIX) :]
    return value


def cover_to_site_path(archive_path: str | None) -> str | None:
    """
    压缩包内相对路径转换为站内绝对路径

    示例：
        "../uploads/cover.jpg" -> "/uploads/cover.jpg"
        "images/cover.jpg" -> "/images/cover.jpg"
    """
    value = (archive_path or "").strip()
    if not value:
        return None
    if value.startswith(("http://", "https://", "//")):
        return value
    if value.startswith(UPLOADS_ARCHIVE_PREFIX):
        return UPLOADS_SITE_PREFIX + value[len(UPLOADS_ARCHIVE_PREFIX) :]
    return value if value.startswith("/") else f"/{value}"


def open_archive(data: bytes) -> ContentArchive:
    if not data:
        raise ArchiveCorruptError("导入失败：压缩包为空")
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise ArchiveCorruptError(f"导入失败：无法打开压缩包（{exc}）") from exc

    with zf:
        names = [info.filename for info in zf.infolist() if not info.is_dir()]
        if MANIFEST_PATH not in names:
            raise ArchiveCorruptError("导入失败：压缩包缺少 manifest.json")

        try:
            manifest = json.loads(zf.read(MANIFEST_PATH).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ArchiveCorruptError(f"导入失败：manifest.json 解析失败（{exc}）") from exc
        if not isinstance(manifest, dict):
            raise ArchiveCorruptError("导入失败：manifest.json 必须是对象")

        files: list[ArchiveFile] = []
        for name in names:
            if name == MANIFEST_PATH:
                continue
            try:
                raw = zf.read(name)
            except (zipfile.BadZipFile, OSError) as exc:
                raise ArchiveCorruptError(f"导入失败：读取 {name} 失败（{exc}）") from exc
            try:
                files.append(ArchiveFile(path=name, content=raw.decode("utf-8-sig")))
            except UnicodeDecodeError as exc:
                files.append(
                    ArchiveFile(path=name, content="", decode_error=f"文件不是 UTF-8 编码（{exc.reason}）")
                )

    return ContentArchive(manifest=manifest, files=files)


def build_archive(manifest: dict[str, Any], files: list[ArchiveFile]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(MANIFEST_PATH, json.dumps(manifest, ensure_ascii=False, indent=2))
        for item in files:
            zf.writestr(item.path, item.content)
    return buffer.getvalue()
