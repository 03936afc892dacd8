"""Object store client protocol and data types.

This module defines the interface the file storage service relies on:
bucket creation, metadata lookups, chunked uploads, batch deletes and reads.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import BinaryIO, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class HeadResult(enum.Enum):
    """Outcome of a metadata-only existence lookup.

    Failures that leave existence undetermined (permission denied, transport
    errors) are raised as ``StorageError`` instead of mapped to a member.
    """

    EXISTS = "exists"
    ABSENT = "absent"

    @property
    def exists(self) -> bool:
        return self is HeadResult.EXISTS


@dataclass(frozen=True, slots=True)
class StoredObject:
    """Content and metadata of an object read back from the store."""

    bucket: str
    object_key: str
    content: bytes
    content_type: str | None


class ObjectStoreClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations must be safe to share between threads.
    """

    def create_bucket(self, *, bucket: str, region: str | None = None) -> None:
        """Create a bucket.

        Args:
            bucket: Bucket name.
            region: Location constraint for the bucket.

        Raises:
            StorageError: If the bucket exists already or the call fails.
        """
        ...

    def head_bucket(self, *, bucket: str) -> HeadResult:
        """Check whether a bucket exists.

        Raises:
            StorageError: If the store answers with anything but found/not found.
        """
        ...

    def head_object(self, *, bucket: str, object_key: str) -> HeadResult:
        """Check whether an object exists without downloading it.

        Raises:
            StorageError: If the store answers with anything but found/not found.
        """
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str,
        fileobj: BinaryIO,
        part_size_bytes: int,
    ) -> str:
        """Upload a stream, split in parts of ``part_size_bytes`` when large.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            content_type: MIME type stored with the object.
            fileobj: Readable binary stream.
            part_size_bytes: Multipart chunk size.

        Returns:
            Locator (URL) addressing the uploaded object.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    def delete_objects(self, *, bucket: str, object_keys: Sequence[str]) -> None:
        """Delete several objects with a single batch request.

        Raises:
            StorageError: If the request fails or any key could not be deleted.
        """
        ...

    def get_object(self, *, bucket: str, object_key: str) -> StoredObject:
        """Read an object's content.

        Raises:
            StorageError: If the operation fails.
        """
        ...
