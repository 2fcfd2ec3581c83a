from app.domain.content_export_service import ContentExportService
from app.domain.content_identity import IdentityResolver, SlugAllocator
from app.domain.content_import_service import ContentImportService, ImportResult
from app.domain.content_store import ContentStore, ExportFilter, SqlAlchemyContentStore

__all__ = [
    "ContentExportService",
    "ContentImportService",
    "ContentStore",
    "ExportFilter",
    "IdentityResolver",
    "ImportResult",
    "SlugAllocator",
    "SqlAlchemyContentStore",
]
