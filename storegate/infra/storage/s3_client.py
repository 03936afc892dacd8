"""S3-compatible object store client implementation.

This module provides an object store client that works with AWS S3, MinIO,
and other S3-compatible services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO, Sequence
from urllib.parse import quote, urlsplit

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from storegate.infra.storage.client import HeadResult, StorageError, StoredObject

if TYPE_CHECKING:
    from storegate.common.config import Settings

# Error codes S3 (and MinIO) use for a missing bucket or key on HEAD/GET
NOT_FOUND_CODES = frozenset({"404", "NotFound", "NoSuchBucket", "NoSuchKey"})

# us-east-1 is the default location and may not be passed as a constraint
DEFAULT_REGION = "us-east-1"


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _is_not_found(exc: ClientError) -> bool:
    if _error_code(exc) in NOT_FOUND_CODES:
        return True
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status == 404


class S3StorageClient:
    """S3-compatible object store client.

    Uses boto3 for all storage operations; the boto3 client is thread-safe,
    so one instance can be shared by concurrent requests.
    """

    def __init__(self, *, settings: "Settings") -> None:
        self._settings = settings
        self._addressing_style = settings.S3_ADDRESSING_STYLE
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        config = Config(s3={"addressing_style": settings.S3_ADDRESSING_STYLE})
        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def create_bucket(self, *, bucket: str, region: str | None = None) -> None:
        params: dict[str, Any] = {"Bucket": bucket}
        if region and region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self._client.create_bucket(**params)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to create bucket {bucket}: {exc}") from exc

    def head_bucket(self, *, bucket: str) -> HeadResult:
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if _is_not_found(exc):
                return HeadResult.ABSENT
            raise StorageError(f"Failed to check bucket {bucket}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to check bucket {bucket}: {exc}") from exc
        return HeadResult.EXISTS

    def head_object(self, *, bucket: str, object_key: str) -> HeadResult:
        try:
            self._client.head_object(Bucket=bucket, Key=object_key)
        except ClientError as exc:
            if _is_not_found(exc):
                return HeadResult.ABSENT
            raise StorageError(f"Failed to check object {object_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to check object {object_key}: {exc}") from exc
        return HeadResult.EXISTS

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str,
        fileobj: BinaryIO,
        part_size_bytes: int,
    ) -> str:
        transfer_config = TransferConfig(
            multipart_threshold=part_size_bytes,
            multipart_chunksize=part_size_bytes,
        )
        try:
            self._client.upload_fileobj(
                fileobj,
                bucket,
                object_key,
                ExtraArgs={"ContentType": content_type},
                Config=transfer_config,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to upload object: {exc}") from exc

        return self._object_url(bucket, object_key)

    def delete_objects(self, *, bucket: str, object_keys: Sequence[str]) -> None:
        payload = {
            "Objects": [{"Key": key} for key in object_keys],
            "Quiet": True,
        }
        try:
            response = self._client.delete_objects(Bucket=bucket, Delete=payload)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to delete objects: {exc}") from exc

        errors = response.get("Errors") or []
        if errors:
            failed = ", ".join(
                f"{err.get('Key')} ({err.get('Code')})" for err in errors
            )
            raise StorageError(f"Failed to delete objects: {failed}")

    def get_object(self, *, bucket: str, object_key: str) -> StoredObject:
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
            content = response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to read object: {exc}") from exc

        return StoredObject(
            bucket=bucket,
            object_key=object_key,
            content=content,
            content_type=response.get("ContentType"),
        )

    def _object_url(self, bucket: str, object_key: str) -> str:
        """Build the URL addressing an object, honouring the addressing style."""
        endpoint = str(self._client.meta.endpoint_url).rstrip("/")
        key = quote(object_key, safe="/~")
        if self._addressing_style == "virtual":
            parts = urlsplit(endpoint)
            return f"{parts.scheme}://{bucket}.{parts.netloc}/{key}"
        return f"{endpoint}/{bucket}/{key}"
