"""File API router.

Upload, delete and download files held in a bucket. Handlers are plain
functions so the blocking store calls run in the threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from storegate.api.v1.deps import get_deadline, get_file_service
from storegate.api.v1.schemas.files import (
    FileDelete,
    FileDeleteOut,
    FileUpload,
    FileUploadOut,
)
from storegate.api.v1.utils import to_http_exception
from storegate.app.services.base import Deadline, ServiceError
from storegate.app.services.file_service import (
    DeleteFileData,
    DownloadFileData,
    FileStorageService,
    UploadFileData,
)
from storegate.infra.storage.client import StorageError

router = APIRouter()


@router.post(
    "/buckets/{bucket_name}/files",
    response_model=FileUploadOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
    description=(
        "Upload a base64 encoded file. The bucket is created when missing; "
        "an existing file with the same name is never overwritten."
    ),
)
def upload_file(
    bucket_name: str,
    payload: FileUpload,
    service: FileStorageService = Depends(get_file_service),
    deadline: Deadline | None = Depends(get_deadline),
) -> FileUploadOut:
    data = UploadFileData(
        bucket_name=bucket_name,
        filename=payload.filename,
        content_type=payload.content_type,
        base64_payload=payload.base64_payload,
    )
    try:
        location = service.upload_file(data, deadline=deadline)
    except (ServiceError, StorageError) as exc:
        raise to_http_exception(exc) from exc
    return FileUploadOut(
        bucket_name=bucket_name,
        filename=payload.filename,
        location=location,
    )


@router.delete(
    "/buckets/{bucket_name}/files",
    response_model=FileDeleteOut,
    summary="Delete files",
    description="Delete the listed files. Names that do not exist are skipped.",
)
def delete_files(
    bucket_name: str,
    payload: FileDelete,
    service: FileStorageService = Depends(get_file_service),
    deadline: Deadline | None = Depends(get_deadline),
) -> FileDeleteOut:
    data = DeleteFileData(bucket_name=bucket_name, filenames=tuple(payload.filenames))
    try:
        deleted = service.delete_file(data, deadline=deadline)
    except (ServiceError, StorageError) as exc:
        raise to_http_exception(exc) from exc
    return FileDeleteOut(bucket_name=bucket_name, deleted=deleted)


@router.get(
    "/buckets/{bucket_name}/files/{filename:path}",
    summary="Download file",
    description="Return the raw content of a stored file.",
    response_class=Response,
)
def download_file(
    bucket_name: str,
    filename: str,
    service: FileStorageService = Depends(get_file_service),
    deadline: Deadline | None = Depends(get_deadline),
) -> Response:
    data = DownloadFileData(bucket_name=bucket_name, filename=filename)
    try:
        downloaded = service.download_file(data, deadline=deadline)
    except (ServiceError, StorageError) as exc:
        raise to_http_exception(exc) from exc
    return Response(
        content=downloaded.content,
        media_type=downloaded.content_type or "application/octet-stream",
    )
