"""Bucket API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from storegate.api.v1.deps import get_deadline, get_file_service
from storegate.api.v1.schemas.files import BucketCreate, BucketOut
from storegate.api.v1.utils import to_http_exception
from storegate.app.services.base import Deadline, ServiceError
from storegate.app.services.file_service import FileStorageService
from storegate.infra.storage.client import StorageError

router = APIRouter()


@router.post(
    "/buckets",
    response_model=BucketOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create bucket",
    description="Create a bucket in the configured region. Fails if it already exists.",
)
def create_bucket(
    payload: BucketCreate,
    service: FileStorageService = Depends(get_file_service),
    deadline: Deadline | None = Depends(get_deadline),
) -> BucketOut:
    try:
        service.create_bucket(payload.bucket_name, deadline=deadline)
    except (ServiceError, StorageError) as exc:
        raise to_http_exception(exc) from exc
    return BucketOut(bucket_name=payload.bucket_name)
