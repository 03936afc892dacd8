"""Tests for FileStorageService."""

from __future__ import annotations

import base64

import pytest

from storegate.app.services.base import (
    AlreadyExistsError,
    BucketNotFoundError,
    Deadline,
    DeadlineExceededError,
    InvalidArgumentError,
    InvalidPayloadError,
    ObjectNotFoundError,
    UnknownContentTypeError,
)
from storegate.app.services.file_service import (
    DeleteFileData,
    DownloadFileData,
    FileStorageService,
    UploadFileData,
)
from storegate.common.config import DEFAULT_PART_SIZE_BYTES
from storegate.infra.storage.client import StorageError


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _upload_data(**overrides) -> UploadFileData:
    values = {
        "bucket_name": "docs",
        "filename": "greeting.txt",
        "content_type": "text/plain",
        "base64_payload": _b64(b"hello"),
    }
    values.update(overrides)
    return UploadFileData(**values)


@pytest.fixture()
def service(mock_storage, settings):
    return FileStorageService(storage_client=mock_storage, settings=settings)


class TestCreateBucket:
    def test_rejects_empty_name_without_store_calls(self, service, mock_storage):
        with pytest.raises(InvalidArgumentError, match="bucket name"):
            service.create_bucket("")

        assert mock_storage.calls == []

    def test_creates_bucket_in_configured_region(self, service, mock_storage):
        service.create_bucket("valid-name")

        assert mock_storage.calls_to("create_bucket") == [
            {"bucket": "valid-name", "region": "eu-west-1"}
        ]
        assert service.bucket_exists("valid-name") is True

    def test_existing_bucket_error_is_surfaced(self, service, mock_storage):
        service.create_bucket("valid-name")

        with pytest.raises(StorageError, match="BucketAlreadyOwnedByYou"):
            service.create_bucket("valid-name")


class TestExistenceChecks:
    def test_missing_bucket_is_false(self, service):
        assert service.bucket_exists("nope") is False

    def test_missing_object_is_false(self, service, mock_storage):
        mock_storage.put_existing("docs", "a.txt")

        assert service.object_exists("docs", "a.txt") is True
        assert service.object_exists("docs", "b.txt") is False

    def test_lookup_failure_propagates(self, service, mock_storage):
        mock_storage.failures["head_object"] = StorageError("AccessDenied")

        with pytest.raises(StorageError, match="AccessDenied"):
            service.object_exists("docs", "a.txt")


class TestUploadFile:
    @pytest.mark.parametrize(
        "field", ["bucket_name", "filename", "base64_payload"]
    )
    def test_rejects_missing_field_without_store_calls(
        self, service, mock_storage, field
    ):
        with pytest.raises(InvalidArgumentError):
            service.upload_file(_upload_data(**{field: ""}))

        assert mock_storage.calls == []

    def test_rejects_unregistered_content_type(self, service, mock_storage):
        data = _upload_data(content_type="application/x-bogus-unregistered")

        with pytest.raises(UnknownContentTypeError):
            service.upload_file(data)

        assert mock_storage.calls == []

    def test_rejects_existing_file_without_transfer(
        self, service, mock_storage, staging_dir
    ):
        mock_storage.put_existing("docs", "greeting.txt", b"old")

        with pytest.raises(AlreadyExistsError, match="greeting.txt"):
            service.upload_file(_upload_data())

        assert mock_storage.calls_to("put_object") == []
        assert mock_storage.buckets["docs"]["greeting.txt"]["content"] == b"old"
        assert list(staging_dir.iterdir()) == []

    def test_uploads_and_returns_locator(self, service, mock_storage):
        mock_storage.put_existing("docs", "other.txt")

        location = service.upload_file(_upload_data())

        assert location == "https://mock-s3/docs/greeting.txt"
        put = mock_storage.calls_to("put_object")[0]
        assert put["content_type"] == "text/plain"
        assert put["part_size_bytes"] == DEFAULT_PART_SIZE_BYTES
        assert mock_storage.calls_to("create_bucket") == []

    def test_creates_missing_bucket_before_transfer(self, service, mock_storage):
        service.upload_file(_upload_data())

        names = [name for name, _ in mock_storage.calls]
        assert names == ["head_object", "head_bucket", "create_bucket", "put_object"]
        assert "greeting.txt" in mock_storage.buckets["docs"]

    def test_removes_staged_file_after_success(
        self, service, mock_storage, staging_dir
    ):
        service.upload_file(_upload_data())

        assert list(staging_dir.iterdir()) == []

    def test_removes_staged_file_after_failed_transfer(
        self, service, mock_storage, staging_dir
    ):
        mock_storage.failures["put_object"] = StorageError("connection reset")

        with pytest.raises(StorageError, match="connection reset"):
            service.upload_file(_upload_data())

        assert list(staging_dir.iterdir()) == []

    def test_removes_staged_file_after_failed_bucket_creation(
        self, service, mock_storage, staging_dir
    ):
        mock_storage.failures["create_bucket"] = StorageError("AccessDenied")

        with pytest.raises(StorageError):
            service.upload_file(_upload_data())

        assert mock_storage.calls_to("put_object") == []
        assert list(staging_dir.iterdir()) == []

    def test_rejects_invalid_base64(self, service, mock_storage, staging_dir):
        with pytest.raises(InvalidPayloadError):
            service.upload_file(_upload_data(base64_payload="not base64!"))

        assert mock_storage.calls_to("put_object") == []
        assert list(staging_dir.iterdir()) == []

    def test_line_wrapped_payload_round_trips(self, service, staging_dir):
        raw = b"hello world " * 10
        wrapped = base64.encodebytes(raw).decode("ascii")

        service.upload_file(_upload_data(base64_payload=wrapped))
        downloaded = service.download_file(
            DownloadFileData(bucket_name="docs", filename="greeting.txt")
        )

        assert downloaded.content == raw
        assert list(staging_dir.iterdir()) == []

    def test_accepts_content_type_with_parameters(self, service, mock_storage):
        service.upload_file(_upload_data(content_type="text/plain; charset=utf-8"))

        put = mock_storage.calls_to("put_object")[0]
        assert put["content_type"] == "text/plain; charset=utf-8"

    def test_expired_deadline_stops_before_store_calls(self, service, mock_storage):
        with pytest.raises(DeadlineExceededError):
            service.upload_file(_upload_data(), deadline=Deadline(expires_at=0.0))

        assert mock_storage.calls == []


class TestDeleteFile:
    def test_rejects_empty_filenames(self, service, mock_storage):
        with pytest.raises(InvalidArgumentError, match="filename"):
            service.delete_file(DeleteFileData(bucket_name="docs", filenames=()))

        assert mock_storage.calls == []

    def test_rejects_empty_bucket_name(self, service, mock_storage):
        with pytest.raises(InvalidArgumentError, match="bucket name"):
            service.delete_file(DeleteFileData(bucket_name="", filenames=("a.txt",)))

        assert mock_storage.calls == []

    def test_deletes_only_existing_files(self, service, mock_storage):
        mock_storage.put_existing("docs", "a.txt")

        deleted = service.delete_file(
            DeleteFileData(bucket_name="docs", filenames=("a.txt", "b.txt"))
        )

        assert deleted == ["a.txt"]
        assert mock_storage.calls_to("delete_objects") == [
            {"bucket": "docs", "object_keys": ["a.txt"]}
        ]
        assert "a.txt" not in mock_storage.buckets["docs"]

    def test_duplicate_names_are_checked_once(self, service, mock_storage):
        mock_storage.put_existing("docs", "a.txt")

        deleted = service.delete_file(
            DeleteFileData(bucket_name="docs", filenames=("a.txt", "a.txt"))
        )

        assert deleted == ["a.txt"]
        assert len(mock_storage.calls_to("head_object")) == 1

    def test_no_batch_call_when_nothing_exists(self, service, mock_storage):
        deleted = service.delete_file(
            DeleteFileData(bucket_name="docs", filenames=("a.txt", "b.txt"))
        )

        assert deleted == []
        assert mock_storage.calls_to("delete_objects") == []

    def test_batch_error_is_surfaced(self, service, mock_storage):
        mock_storage.put_existing("docs", "a.txt")
        mock_storage.failures["delete_objects"] = StorageError("a.txt (AccessDenied)")

        with pytest.raises(StorageError, match="AccessDenied"):
            service.delete_file(DeleteFileData(bucket_name="docs", filenames=("a.txt",)))


class TestDownloadFile:
    def test_round_trip(self, service):
        service.upload_file(_upload_data())

        downloaded = service.download_file(
            DownloadFileData(bucket_name="docs", filename="greeting.txt")
        )

        assert downloaded.content == b"hello"
        assert downloaded.content_type == "text/plain"

    @pytest.mark.parametrize(
        ("bucket_name", "filename"), [("", "a.txt"), ("docs", "")]
    )
    def test_rejects_missing_field(self, service, mock_storage, bucket_name, filename):
        with pytest.raises(InvalidArgumentError):
            service.download_file(
                DownloadFileData(bucket_name=bucket_name, filename=filename)
            )

        assert mock_storage.calls == []

    def test_missing_bucket(self, service):
        with pytest.raises(BucketNotFoundError):
            service.download_file(DownloadFileData(bucket_name="docs", filename="a.txt"))

    def test_missing_file(self, service, mock_storage):
        mock_storage.put_existing("docs", "other.txt")

        with pytest.raises(ObjectNotFoundError):
            service.download_file(DownloadFileData(bucket_name="docs", filename="a.txt"))

        assert mock_storage.calls_to("get_object") == []
