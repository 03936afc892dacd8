"""Tests for helper functions in storegate/main.py."""

from __future__ import annotations

from storegate.common.config import Settings
from storegate.main import _describe_storage_target, _normalize_detail, _resolve_error_code


class TestNormalizeDetail:
    def test_unwraps_message_and_extracts_error_code(self) -> None:
        detail, code = _normalize_detail({"message": "x", "error_code": "custom"})
        assert detail == "x"
        assert code == "custom"

    def test_strips_error_code_and_handles_empty(self) -> None:
        detail, code = _normalize_detail({"error_code": "custom"})
        assert detail is None
        assert code == "custom"

    def test_ignores_non_string_error_code(self) -> None:
        detail, code = _normalize_detail({"message": "x", "error_code": 123})
        assert detail == "x"
        assert code is None

    def test_returns_string_detail_as_is(self) -> None:
        detail, code = _normalize_detail("simple error")
        assert detail == "simple error"
        assert code is None


class TestResolveErrorCode:
    def test_override_wins(self) -> None:
        assert _resolve_error_code(404, "file_not_found") == "file_not_found"

    def test_validation_status(self) -> None:
        assert _resolve_error_code(422) == "validation_error"

    def test_known_and_unknown_status(self) -> None:
        assert _resolve_error_code(504) == "gateway_timeout"
        assert _resolve_error_code(418) == "unknown_error"


def test_describe_storage_target_defaults_endpoint() -> None:
    text = _describe_storage_target(Settings(S3_REGION="eu-west-1"))

    assert "endpoint=<aws default>" in text
    assert "region=eu-west-1" in text
    assert f"part_size_bytes={10 * 1024 * 1024}" in text
