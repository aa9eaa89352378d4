from __future__ import annotations

from typing import Any, BinaryIO, Callable, Protocol

from src.domain.models.publication import RemoteObjectMeta, StorageConfig


class ObjectStorage(Protocol):
    bucket: str

    async def head_object(self, key: str) -> RemoteObjectMeta | None: ...

    async def put_object(self, key: str, body: BinaryIO, *, acl: str) -> dict[str, Any]: ...

    async def delete_object(self, key: str) -> None: ...


StorageFactory = Callable[[StorageConfig], ObjectStorage]
