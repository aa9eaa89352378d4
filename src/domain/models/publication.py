from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from src.domain.value_objects.object_key import join_key, public_url


@dataclass(frozen=True, slots=True)
class StorageConfig:
    bucket: str
    region: str | None = None
    prefix: str = ""
    acl: str = "public-read"
    endpoint_url: str | None = None
    force_path_style: bool = False
    profile: str | None = None
    public_url_base: str | None = None

    def key_for(self, filename: str) -> str:
        return join_key(self.prefix, filename)

    def url_for(self, key: str) -> str:
        return public_url(self.bucket, key, base=self.public_url_base)


@dataclass(frozen=True, slots=True)
class PublishRequest:
    package_name: str
    artifact_path: Path
    filename: str
    storage: StorageConfig

    @property
    def key(self) -> str:
        return self.storage.key_for(self.filename)

    @property
    def public_url(self) -> str:
        return self.storage.url_for(self.key)


@dataclass(frozen=True, slots=True)
class UnpublishRequest:
    package_name: str
    filename: str
    storage: StorageConfig

    @property
    def key(self) -> str:
        return self.storage.key_for(self.filename)

    @property
    def public_url(self) -> str:
        return self.storage.url_for(self.key)


@dataclass(frozen=True, slots=True)
class RemoteObjectMeta:
    key: str
    size: int | None = None
    etag: str | None = None
    last_modified: datetime | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class PublishResult:
    package_name: str
    bucket: str
    key: str
    url: str


@dataclass(frozen=True, slots=True)
class UnpublishResult:
    package_name: str
    bucket: str
    key: str
    url: str
    deleted: bool
