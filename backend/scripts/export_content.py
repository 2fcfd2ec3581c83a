#!/usr/bin/env python3
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))


def main() -> int:
    parser = argparse.ArgumentParser(description="Export posts to a Markdown zip archive")
    parser.add_argument("--output", required=True, help="Path of the zip file to write")
    parser.add_argument("--from", dest="from_date", default=None, help="Lower date bound (inclusive)")
    parser.add_argument("--to", dest="to_date", default=None, help="Upper date bound (inclusive)")
    parser.add_argument(
        "--status",
        dest="statuses",
        action="append",
        choices=["DRAFT", "PUBLISHED"],
        help="Only export posts with this status (repeatable)",
    )
    parser.add_argument(
        "--locale",
        dest="locales",
        action="append",
        choices=["EN", "ZH"],
        help="Only export posts in this locale (repeatable)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this run",
    )
    args = parser.parse_args()

    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url

    from app.core.settings import get_settings
    from app.domain.content_export_service import ContentExportService
    from app.domain.content_store import ExportFilter, SqlAlchemyContentStore
    from models import PostLocale, PostStatus, SessionLocal

    export_filter = ExportFilter(
        from_date=args.from_date,
        to_date=args.to_date,
        statuses=[PostStatus(item) for item in args.statuses or []],
        locales=[PostLocale(item) for item in args.locales or []],
    )

    db = SessionLocal()
    try:
        service = ContentExportService(
            SqlAlchemyContentStore(db),
            export_version=get_settings().content.export_version,
        )
        archive = service.export_content(export_filter)
    finally:
        db.close()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(archive)
    print(f"Export complete: {output} ({len(archive)} bytes)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
