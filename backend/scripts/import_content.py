#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a Markdown zip archive into posts")
    parser.add_argument("archive", help="Path of the zip file to import")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply changes (default is dry-run)",
    )
    parser.add_argument(
        "--admin-id",
        default=None,
        help="Author id for created posts without an author field",
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
    from app.domain.content_import_service import ContentImportService
    from app.domain.content_store import SqlAlchemyContentStore
    from content_errors import ArchiveCorruptError
    from models import SessionLocal

    content_settings = get_settings().content
    data = Path(args.archive).read_bytes()

    db = SessionLocal()
    try:
        service = ContentImportService(
            SqlAlchemyContentStore(db),
            export_version=content_settings.export_version,
        )
        result = service.import_content(
            data,
            dry_run=not args.apply,
            admin_id=args.admin_id or content_settings.default_author_id,
        )
    except ArchiveCorruptError as exc:
        print(exc.message, file=sys.stderr)
        return 2
    finally:
        db.close()

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 1 if result.summary["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
