from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config

from app.core.settings import get_settings

BACKEND_DIR = Path(__file__).resolve().parents[2]


def build_alembic_config(database_url: str | None = None) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url or get_settings().database_url)
    return config


def run_db_migrations(database_url: str | None = None) -> None:
    command.upgrade(build_alembic_config(database_url), "head")
