from fastapi import FastAPI

from app.api.routers.content_router import router as content_router
from app.api.routers.health_router import router as health_router

BACKEND_PREFIX = "/backend"


def register_routers(app: FastAPI) -> None:
    prefix = BACKEND_PREFIX
    app.include_router(content_router, prefix=prefix)

    app.include_router(health_router, prefix=prefix)
