import logging

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storegate.api.v1.deps import get_file_service, require_api_key
from storegate.api.v1.routers.buckets import router as buckets_router
from storegate.api.v1.routers.files import router as files_router
from storegate.app.services.file_service import FileStorageService
from storegate.common.config import Settings, get_settings
from storegate.common.logging import setup_logging
from storegate.infra.observability.metrics import metrics_app
from storegate.infra.observability.middleware import MetricsMiddleware
from storegate.infra.storage.client import StorageError

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    415: "unsupported_media_type",
    429: "too_many_requests",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
    504: "gateway_timeout",
}


def _normalize_detail(detail):
    if isinstance(detail, dict):
        maybe_code = detail.get("error_code")
        cleaned = {k: v for k, v in detail.items() if k != "error_code"}
        if len(cleaned) == 1 and "message" in cleaned:
            cleaned = cleaned["message"]
        if not cleaned:
            cleaned = None
        return cleaned, maybe_code if isinstance(maybe_code, str) else None
    return detail, None


def _resolve_error_code(status_code: int, override: str | None = None) -> str:
    if override:
        return override
    if status_code == 422:
        return "validation_error"
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _describe_storage_target(settings: Settings) -> str:
    endpoint = settings.S3_ENDPOINT_URL or "<aws default>"
    return (
        f"endpoint={endpoint}, region={settings.S3_REGION}, "
        f"addressing_style={settings.S3_ADDRESSING_STYLE}, "
        f"part_size_bytes={settings.STORAGE_PART_SIZE_BYTES}"
    )


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="Storegate",
        version="v1.0",
        description="Bucket creation, file upload and deletion over S3-compatible storage",
    )

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(
        buckets_router,
        prefix="/api/v1",
        tags=["buckets"],
        dependencies=[Depends(require_api_key)],
    )
    app.include_router(
        files_router,
        prefix="/api/v1",
        tags=["files"],
        dependencies=[Depends(require_api_key)],
    )

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    @app.on_event("startup")
    def on_startup() -> None:
        startup_logger = logging.getLogger("storegate.startup")
        startup_logger.info(
            "object storage configured [event=storage_configured] (%s)",
            _describe_storage_target(settings),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger = logging.getLogger("http")
        normalized_detail, code_override = _normalize_detail(exc.detail)
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            "http_exception status=%s detail=%s method=%s path=%s request_id=%s",
            exc.status_code,
            normalized_detail,
            request.method,
            request.url.path,
            request.headers.get("X-Request-Id"),
            extra={
                "extra": {
                    "status": exc.status_code,
                    "detail": normalized_detail,
                    "method": request.method,
                    "route": request.url.path,
                    "request_id": request.headers.get("X-Request-Id"),
                }
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            media_type="application/problem+json",
            content={
                "type": "about:blank",
                "title": "HTTP Error",
                "status": exc.status_code,
                "detail": normalized_detail,
                "error_code": _resolve_error_code(exc.status_code, code_override),
                "instance": str(request.url),
                "request_id": request.headers.get("X-Request-Id"),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        return JSONResponse(
            status_code=422,
            media_type="application/problem+json",
            content={
                "type": "about:blank",
                "title": "Validation Error",
                "status": 422,
                "detail": jsonable_encoder(exc.errors()),
                "error_code": _resolve_error_code(422),
                "instance": str(request.url),
                "request_id": request.headers.get("X-Request-Id"),
            },
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    def ready(service: FileStorageService = Depends(get_file_service)):
        bucket = settings.STORAGE_READY_BUCKET
        if not bucket:
            return {"status": "ready"}
        try:
            if not service.bucket_exists(bucket):
                return {"status": "not_ready", "detail": {"missing_bucket": bucket}}
        except StorageError as exc:
            return {"status": "not_ready", "detail": {"storage": str(exc)}}
        return {"status": "ready"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("storegate.main:app", host="0.0.0.0", port=8000, reload=True)
