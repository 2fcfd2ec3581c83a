from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from app.core.dependencies import get_admin_or_internal, get_content_store
from app.core.settings import get_settings
from app.domain.content_export_service import ContentExportService
from app.domain.content_import_service import ContentImportService
from app.domain.content_store import SqlAlchemyContentStore
from app.schemas import ContentExportRequest
from content_errors import ArchiveCorruptError

router = APIRouter()


@router.post("/api/content/import")
def import_content(
    file: UploadFile = File(...),
    dry_run: bool = Query(default=True, alias="dryRun"),
    store: SqlAlchemyContentStore = Depends(get_content_store),
    admin_id: str = Depends(get_admin_or_internal),
):
    content_settings = get_settings().content
    data = file.file.read(content_settings.import_max_bytes + 1)
    if len(data) > content_settings.import_max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"导入失败：压缩包超过 {content_settings.import_max_bytes} 字节上限",
        )

    service = ContentImportService(store, export_version=content_settings.export_version)
    try:
        result = service.import_content(data, dry_run=dry_run, admin_id=admin_id)
    except ArchiveCorruptError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except Exception as exc:
        store.db.rollback()
        raise HTTPException(status_code=400, detail=f"导入失败：{str(exc)}")
    return result.to_dict()


@router.post("/api/content/export")
def export_content(
    request: Optional[ContentExportRequest] = None,
    store: SqlAlchemyContentStore = Depends(get_content_store),
    _: str = Depends(get_admin_or_internal),
):
    export_filter = (request or ContentExportRequest()).to_filter()
    service = ContentExportService(store, export_version=get_settings().content.export_version)
    try:
        archive = service.export_content(export_filter)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"content-export-{timestamp}.zip"
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
