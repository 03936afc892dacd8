"""Request validation for the file storage service.

Checks here are pure: they look at request fields only and never touch the
object store. Existence checks happen in the service after these pass.
"""

from __future__ import annotations

import mimetypes
from typing import TYPE_CHECKING

from storegate.app.services.base import InvalidArgumentError, UnknownContentTypeError

if TYPE_CHECKING:
    from storegate.app.services.file_service import (
        DeleteFileData,
        DownloadFileData,
        UploadFileData,
    )


def _require(value: str | None, field: str) -> None:
    if not value:
        raise InvalidArgumentError(f"{field} is required")


def media_type(content_type: str) -> str:
    """Strip parameters from a content type: ``text/plain; charset=utf-8`` -> ``text/plain``."""
    return content_type.split(";", 1)[0].strip().lower()


def extensions_for(content_type: str) -> list[str]:
    """Return the file extensions registered for a MIME type."""
    base = media_type(content_type)
    if not base:
        return []
    return mimetypes.guess_all_extensions(base, strict=False)


def validate_content_type(content_type: str | None) -> None:
    if not content_type or not extensions_for(content_type):
        raise UnknownContentTypeError(f"unknown content type: {content_type!r}")


def validate_bucket_name(bucket_name: str | None) -> None:
    _require(bucket_name, "bucket name")


def validate_upload(data: "UploadFileData") -> None:
    _require(data.filename, "filename")
    _require(data.base64_payload, "base64 payload")
    _require(data.bucket_name, "bucket name")
    validate_content_type(data.content_type)


def validate_delete(data: "DeleteFileData") -> None:
    if not data.filenames:
        raise InvalidArgumentError("filename is required")
    for filename in data.filenames:
        _require(filename, "filename")
    _require(data.bucket_name, "bucket name")


def validate_download(data: "DownloadFileData") -> None:
    _require(data.bucket_name, "bucket name")
    _require(data.filename, "filename")
