from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

# ruff: noqa: E402
from src.config.settings import Settings
from src.domain.models.publication import StorageConfig


@pytest.fixture()
def storage_config() -> StorageConfig:
    return StorageConfig(bucket="my-bucket", region="us-east-1", prefix="pkg/v1/")


@pytest.fixture()
def artifact(tmp_path) -> Path:
    path = tmp_path / "addon.tar.gz"
    path.write_bytes(b"\x1f\x8b fake tarball contents")
    return path


@pytest.fixture()
def test_settings() -> Settings:
    return Settings.model_validate(
        {
            "log_level": "INFO",
            "s3_bucket": "my-bucket",
            "s3_region": "us-east-1",
            "s3_prefix": "pkg/v1/",
        }
    )
