from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    # Hosted location, e.g. https://my-bucket.s3-us-west-1.amazonaws.com/binaries/
    s3_hosted_path: str | None = None
    # Explicit values win over whatever is detected from s3_hosted_path
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_prefix: str | None = None
    s3_acl: str = "public-read"
    s3_endpoint_url: str | None = None  # S3-compatible hosts (MinIO, R2, ...)
    s3_force_path_style: bool = False
    s3_public_url_base: str | None = None
    aws_profile: str | None = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("s3_prefix")
    @classmethod
    def strip_leading_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.lstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
