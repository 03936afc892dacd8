from .base import (
    AlreadyExistsError,
    BucketNotFoundError,
    Deadline,
    DeadlineExceededError,
    InvalidArgumentError,
    InvalidPayloadError,
    ObjectNotFoundError,
    ServiceError,
    StagingIOError,
    UnknownContentTypeError,
)
from .file_service import (
    DeleteFileData,
    DownloadedFile,
    DownloadFileData,
    FileStorageService,
    UploadFileData,
)
from .staging import staged_payload

__all__ = [
    "FileStorageService",
    "UploadFileData",
    "DeleteFileData",
    "DownloadFileData",
    "DownloadedFile",
    "Deadline",
    "ServiceError",
    "InvalidArgumentError",
    "UnknownContentTypeError",
    "AlreadyExistsError",
    "BucketNotFoundError",
    "ObjectNotFoundError",
    "InvalidPayloadError",
    "StagingIOError",
    "DeadlineExceededError",
    "staged_payload",
]
