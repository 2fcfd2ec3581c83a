from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

import auth
from app.core import dependencies
from app.core.settings import AppSettings


@pytest.fixture()
def configured_settings(monkeypatch) -> AppSettings:
    settings = AppSettings(
        DATABASE_URL="sqlite:///./unit-tests.db",
        INTERNAL_API_TOKEN="internal-token",
        ADMIN_JWT_SECRET="jwt-secret",
        CONTENT_DEFAULT_AUTHOR_ID="site-owner",
    )
    monkeypatch.setattr(dependencies, "get_settings", lambda: settings)
    monkeypatch.setattr(auth, "get_settings", lambda: settings)
    return settings


def make_request(headers: dict[str, str] | None = None):
    return SimpleNamespace(headers=headers or {})


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_is_internal_request_compares_token(configured_settings):
    assert dependencies.is_internal_request(make_request({"X-Internal-Token": "internal-token"}))
    assert not dependencies.is_internal_request(make_request({"X-Internal-Token": "wrong"}))
    assert not dependencies.is_internal_request(make_request())


def test_is_internal_request_disabled_without_configured_token(monkeypatch):
    settings = AppSettings(DATABASE_URL="sqlite://", INTERNAL_API_TOKEN="", ADMIN_JWT_SECRET="x")
    monkeypatch.setattr(dependencies, "get_settings", lambda: settings)
    assert not dependencies.is_internal_request(make_request({"X-Internal-Token": ""}))


def test_get_admin_or_internal_returns_default_author_for_internal_calls(configured_settings):
    admin_id = dependencies.get_admin_or_internal(
        make_request({"X-Internal-Token": "internal-token"}),
        credentials=None,
    )
    assert admin_id == "site-owner"


def test_get_admin_or_internal_returns_token_subject(configured_settings):
    token = auth.create_token("jwt-secret", subject="admin-42")
    admin_id = dependencies.get_admin_or_internal(make_request(), credentials=bearer(token))
    assert admin_id == "admin-42"


def test_get_admin_or_internal_rejects_missing_credentials(configured_settings):
    with pytest.raises(HTTPException) as exc_info:
        dependencies.get_admin_or_internal(make_request(), credentials=None)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "未登录，请先登录"


def test_get_admin_or_internal_rejects_token_signed_with_other_secret(configured_settings):
    token = auth.create_token("another-secret")
    with pytest.raises(HTTPException) as exc_info:
        dependencies.get_admin_or_internal(make_request(), credentials=bearer(token))
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "登录已过期，请重新登录"


def test_decode_token_subject_returns_none_for_garbage():
    assert auth.decode_token_subject("not-a-jwt", "jwt-secret") is None
