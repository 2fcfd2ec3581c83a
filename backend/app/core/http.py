import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.settings import AppSettings

logger = logging.getLogger("content_api")
if not logger.handlers:
    logging.basicConfig(level=logging.INFO)


def log_event(event: str, request_id: str, **fields) -> None:
    payload = {"event": event, "request_id": request_id, **fields}
    logger.info(json.dumps(payload, ensure_ascii=False))


def configure_cors(app: FastAPI, settings: AppSettings) -> None:
    allowed_origins = settings.cors_allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allowed_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-Id"],
    )


def configure_request_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id
        path = str(request.url.path)
        start_time = time.perf_counter()
        log_event(
            "request_start",
            request_id,
            method=request.method,
            path=path,
            content_length=request.headers.get("content-length"),
        )
        try:
            response = await call_next(request)
        except Exception as exc:
            log_event(
                "request_error",
                request_id,
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
            )
            raise
        response.headers["X-Request-Id"] = request_id
        log_event(
            "request_end",
            request_id,
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response
