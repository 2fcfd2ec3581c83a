from app.schemas.content import ContentExportRequest

__all__ = [
    "ContentExportRequest",
]
