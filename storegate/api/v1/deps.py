from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Header, HTTPException

from storegate.app.services.base import Deadline
from storegate.app.services.file_service import FileStorageService
from storegate.common.config import get_settings
from storegate.infra.storage.client import ObjectStoreClient
from storegate.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger("http")


@lru_cache(maxsize=1)
def get_storage_client() -> ObjectStoreClient:
    """One boto3-backed client per process, shared by all requests."""
    return S3StorageClient(settings=get_settings())


def get_file_service() -> FileStorageService:
    return FileStorageService(
        storage_client=get_storage_client(),
        settings=get_settings(),
    )


def get_deadline(
    x_request_timeout: float | None = Header(default=None, gt=0),
) -> Deadline | None:
    """Turn an optional ``X-Request-Timeout`` header (seconds) into a deadline."""
    if x_request_timeout is None:
        return None
    return Deadline.after(x_request_timeout)


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if settings.API_KEY_ENABLED:
        api_key_expected = getattr(settings, "API_KEY", None)
        if not x_api_key or (api_key_expected and x_api_key != api_key_expected):
            preview = f"{x_api_key[:4]}***" if x_api_key else "<missing>"
            logger.warning("api_key_mismatch api_key_preview=%s", preview)
            raise HTTPException(status_code=401, detail="Invalid API key")
