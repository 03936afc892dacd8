"""File storage service for bucket and file operations.

This module provides the application service layer in front of the object
store: request validation, existence checks, payload staging, and the
delegated SDK calls for bucket creation, upload, delete and download.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Sequence

from storegate.app.services import validation
from storegate.app.services.base import (
    AlreadyExistsError,
    BucketNotFoundError,
    Deadline,
    ObjectNotFoundError,
)
from storegate.app.services.staging import staged_payload
from storegate.common.config import Settings, get_settings
from storegate.infra.observability.metrics import STORAGE_OPERATIONS, UPLOAD_DURATION
from storegate.infra.storage.client import ObjectStoreClient
from storegate.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UploadFileData:
    """Input data for uploading a base64 encoded file."""

    bucket_name: str
    filename: str
    content_type: str
    base64_payload: str


@dataclass(frozen=True, slots=True)
class DeleteFileData:
    """Input data for deleting files from a bucket."""

    bucket_name: str
    filenames: Sequence[str]


@dataclass(frozen=True, slots=True)
class DownloadFileData:
    """Input data for reading a file back."""

    bucket_name: str
    filename: str


@dataclass(frozen=True, slots=True)
class DownloadedFile:
    """A file read from the object store."""

    bucket_name: str
    filename: str
    content: bytes
    content_type: str | None


@contextmanager
def _track(operation: str) -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        STORAGE_OPERATIONS.labels(operation, type(exc).__name__).inc()
        raise
    STORAGE_OPERATIONS.labels(operation, "success").inc()


def _check(deadline: Deadline | None, step: str) -> None:
    if deadline is not None:
        deadline.check(step)


class FileStorageService:
    """Application service for bucket and file operations.

    The service keeps no per-call state; one instance may serve concurrent
    callers as long as the injected client is thread-safe.
    """

    def __init__(
        self,
        *,
        storage_client: ObjectStoreClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._storage = storage_client or self._build_storage_client(self._settings)

    @staticmethod
    def _build_storage_client(settings: Settings) -> ObjectStoreClient:
        return S3StorageClient(settings=settings)

    @property
    def region(self) -> str:
        return self._settings.S3_REGION

    def bucket_exists(self, bucket_name: str, *, deadline: Deadline | None = None) -> bool:
        """Check for a bucket; a missing bucket is ``False``, not an error."""
        _check(deadline, "probing bucket")
        return self._storage.head_bucket(bucket=bucket_name).exists

    def object_exists(
        self,
        bucket_name: str,
        filename: str,
        *,
        deadline: Deadline | None = None,
    ) -> bool:
        """Check for an object; a missing object or bucket is ``False``."""
        _check(deadline, "probing object")
        return self._storage.head_object(bucket=bucket_name, object_key=filename).exists

    def create_bucket(self, bucket_name: str, *, deadline: Deadline | None = None) -> None:
        """Create a bucket in the configured region.

        Raises:
            InvalidArgumentError: If the name is empty.
            StorageError: If the store refuses, including when the bucket exists.
        """
        with _track("create_bucket"):
            validation.validate_bucket_name(bucket_name)
            _check(deadline, "creating bucket")
            self._storage.create_bucket(bucket=bucket_name, region=self.region)
        logger.info(
            "bucket_created bucket=%s region=%s",
            bucket_name,
            self.region,
            extra={"extra": {"bucket": bucket_name, "region": self.region}},
        )

    def upload_file(self, data: UploadFileData, *, deadline: Deadline | None = None) -> str:
        """Upload a base64 payload and return the object's locator.

        The destination bucket is created when missing. Existing objects are
        never overwritten.

        Raises:
            InvalidArgumentError: If a required field is empty.
            UnknownContentTypeError: If the content type is not a known MIME type.
            AlreadyExistsError: If the file already exists in the bucket.
            InvalidPayloadError: If the payload is not valid base64.
            StagingIOError: If the payload cannot be written locally.
            StorageError: If any store call fails.
        """
        with _track("upload_file"):
            validation.validate_upload(data)
            if self.object_exists(data.bucket_name, data.filename, deadline=deadline):
                raise AlreadyExistsError(
                    f"file {data.filename} already exists in bucket {data.bucket_name}"
                )

            staging_dir = self._settings.STORAGE_STAGING_DIR
            with staged_payload(data.base64_payload, data.filename, staging_dir) as path:
                if not self.bucket_exists(data.bucket_name, deadline=deadline):
                    logger.info(
                        "bucket_auto_create bucket=%s",
                        data.bucket_name,
                        extra={"extra": {"bucket": data.bucket_name}},
                    )
                    self.create_bucket(data.bucket_name, deadline=deadline)

                _check(deadline, "uploading file")
                started = time.perf_counter()
                with path.open("rb") as fileobj:
                    locator = self._storage.put_object(
                        bucket=data.bucket_name,
                        object_key=data.filename,
                        content_type=data.content_type,
                        fileobj=fileobj,
                        part_size_bytes=self._settings.STORAGE_PART_SIZE_BYTES,
                    )
                elapsed = time.perf_counter() - started
                UPLOAD_DURATION.observe(elapsed)

        logger.info(
            "file_uploaded bucket=%s filename=%s duration_s=%.3f",
            data.bucket_name,
            data.filename,
            elapsed,
            extra={
                "extra": {
                    "bucket": data.bucket_name,
                    "filename": data.filename,
                    "duration_s": round(elapsed, 3),
                }
            },
        )
        return locator

    def delete_file(
        self,
        data: DeleteFileData,
        *,
        deadline: Deadline | None = None,
    ) -> list[str]:
        """Delete the requested files that exist; missing ones are skipped.

        Returns:
            The keys included in the batch delete, in request order.

        Raises:
            InvalidArgumentError: If the bucket name or filename list is empty.
            StorageError: If an existence check or the batch delete fails.
        """
        with _track("delete_file"):
            validation.validate_delete(data)

            existing: list[str] = []
            for filename in dict.fromkeys(data.filenames):
                if self.object_exists(data.bucket_name, filename, deadline=deadline):
                    existing.append(filename)
                else:
                    logger.info(
                        "delete_skip_missing bucket=%s filename=%s",
                        data.bucket_name,
                        filename,
                        extra={
                            "extra": {"bucket": data.bucket_name, "filename": filename}
                        },
                    )

            # S3 rejects a batch delete without objects
            if not existing:
                return existing

            _check(deadline, "deleting files")
            self._storage.delete_objects(bucket=data.bucket_name, object_keys=existing)

        logger.info(
            "files_deleted bucket=%s count=%s",
            data.bucket_name,
            len(existing),
            extra={"extra": {"bucket": data.bucket_name, "filenames": existing}},
        )
        return existing

    def download_file(
        self,
        data: DownloadFileData,
        *,
        deadline: Deadline | None = None,
    ) -> DownloadedFile:
        """Read a file back from the store.

        Raises:
            InvalidArgumentError: If a required field is empty.
            BucketNotFoundError: If the bucket does not exist.
            ObjectNotFoundError: If the file does not exist in the bucket.
            StorageError: If any store call fails.
        """
        with _track("download_file"):
            validation.validate_download(data)
            if not self.bucket_exists(data.bucket_name, deadline=deadline):
                raise BucketNotFoundError(f"bucket {data.bucket_name} not found")
            if not self.object_exists(data.bucket_name, data.filename, deadline=deadline):
                raise ObjectNotFoundError(
                    f"file {data.filename} not found in bucket {data.bucket_name}"
                )

            _check(deadline, "reading file")
            stored = self._storage.get_object(
                bucket=data.bucket_name, object_key=data.filename
            )

        return DownloadedFile(
            bucket_name=data.bucket_name,
            filename=data.filename,
            content=stored.content,
            content_type=stored.content_type,
        )
