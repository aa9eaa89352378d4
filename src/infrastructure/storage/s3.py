from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from botocore.exceptions import BotoCoreError, ClientError

from src.domain.models.publication import RemoteObjectMeta

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NotFound", "NoSuchKey"})


def is_not_found(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    return str(error.get("Code", "")) in NOT_FOUND_CODES


@dataclass(slots=True)
class S3StorageService:
    bucket: str
    client: Any = field(repr=False)
    region: str | None = None

    async def head_object(self, key: str) -> RemoteObjectMeta | None:
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if is_not_found(exc):
                return None
            raise
        return RemoteObjectMeta(
            key=key,
            size=response.get("ContentLength"),
            etag=response.get("ETag"),
            last_modified=response.get("LastModified"),
            content_type=response.get("ContentType"),
        )

    async def put_object(self, key: str, body: BinaryIO, *, acl: str) -> dict[str, Any]:
        try:
            response = self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ACL=acl)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 put_object failed for s3://%s/%s: %s", self.bucket, key, exc)
            raise
        response.pop("ResponseMetadata", None)
        return response

    async def delete_object(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)
