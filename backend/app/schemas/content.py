from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.content_store import ExportFilter
from models import PostLocale, PostStatus


class ContentExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: Optional[str] = Field(default=None, alias="from")
    to_date: Optional[str] = Field(default=None, alias="to")
    statuses: Optional[list[PostStatus]] = None
    locales: Optional[list[PostLocale]] = None

    def to_filter(self) -> ExportFilter:
        return ExportFilter(
            from_date=(self.from_date or "").strip() or None,
            to_date=(self.to_date or "").strip() or None,
            statuses=list(dict.fromkeys(self.statuses or [])),
            locales=list(dict.fromkeys(self.locales or [])),
        )
