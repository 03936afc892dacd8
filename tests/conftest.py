from __future__ import annotations

import os

import pytest

from storegate.common.config import Settings, get_settings

os.environ.setdefault("S3_REGION", "eu-west-1")
os.environ.setdefault("S3_ENDPOINT_URL", "http://localhost:9000")
os.environ.setdefault("API_KEY_ENABLED", "false")
get_settings.cache_clear()  # type: ignore[attr-defined]

from tests.services.mock_storage import MockStorageClient  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings_cache():
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def staging_dir(tmp_path):
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture()
def settings(staging_dir) -> Settings:
    return Settings(S3_REGION="eu-west-1", STORAGE_STAGING_DIR=str(staging_dir))


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()
