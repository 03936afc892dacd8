from fastapi import HTTPException, status

from storegate.app.services.base import (
    AlreadyExistsError,
    BucketNotFoundError,
    DeadlineExceededError,
    InvalidArgumentError,
    InvalidPayloadError,
    ObjectNotFoundError,
    ServiceError,
    StagingIOError,
    UnknownContentTypeError,
)
from storegate.infra.storage.client import StorageError

# (status, error_code) per exception type; first match wins
ERROR_MAPPING: tuple[tuple[type[Exception], int, str], ...] = (
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST, "invalid_argument"),
    (InvalidPayloadError, status.HTTP_400_BAD_REQUEST, "invalid_payload"),
    (
        UnknownContentTypeError,
        status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        "unknown_content_type",
    ),
    (AlreadyExistsError, status.HTTP_409_CONFLICT, "already_exists"),
    (BucketNotFoundError, status.HTTP_404_NOT_FOUND, "bucket_not_found"),
    (ObjectNotFoundError, status.HTTP_404_NOT_FOUND, "file_not_found"),
    (DeadlineExceededError, status.HTTP_504_GATEWAY_TIMEOUT, "deadline_exceeded"),
    (StagingIOError, status.HTTP_500_INTERNAL_SERVER_ERROR, "staging_failed"),
    (StorageError, status.HTTP_502_BAD_GATEWAY, "storage_error"),
)


def to_http_exception(exc: ServiceError | StorageError) -> HTTPException:
    """Translate a service or storage failure into an HTTPException."""
    for exc_type, status_code, error_code in ERROR_MAPPING:
        if isinstance(exc, exc_type):
            return HTTPException(
                status_code=status_code,
                detail={"message": str(exc), "error_code": error_code},
            )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": str(exc), "error_code": "internal_error"},
    )
