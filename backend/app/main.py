from pathlib import Path

from fastapi import FastAPI

from app.core.http import configure_cors, configure_request_middleware
from app.core.settings import get_settings, validate_startup_settings

SQLITE_URL_PREFIX = "sqlite:///"


def _ensure_sqlite_directory(database_url: str) -> None:
    if not database_url.startswith(SQLITE_URL_PREFIX):
        return
    db_path = database_url[len(SQLITE_URL_PREFIX) :]
    if db_path and db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def create_app() -> FastAPI:
    settings = get_settings()
    validate_startup_settings(settings)

    from app.api.router_registry import register_routers
    from models import init_db

    app = FastAPI(title="内容导入导出API", version="1.0.0")

    configure_request_middleware(app)
    configure_cors(app, settings)

    @app.on_event("startup")
    async def startup_event():
        _ensure_sqlite_directory(settings.database_url)
        init_db()

    register_routers(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
