import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.settings import get_settings
from app.domain.content_store import SqlAlchemyContentStore
from auth import get_current_admin, security
from models import get_db


def is_internal_request(request: Request) -> bool:
    token = get_settings().security.internal_api_token
    if not token:
        return False
    provided = request.headers.get("X-Internal-Token") or ""
    return secrets.compare_digest(provided, token)


def get_admin_or_internal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Return the acting admin id; internal callers act as the default author."""
    if is_internal_request(request):
        return get_settings().content.default_author_id
    return get_current_admin(credentials=credentials)


def get_content_store(db: Session = Depends(get_db)) -> SqlAlchemyContentStore:
    return SqlAlchemyContentStore(db)
