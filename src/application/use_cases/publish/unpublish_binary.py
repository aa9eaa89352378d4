from __future__ import annotations

import logging

from src.application.errors import DeleteFailed, RemoteCheckFailed
from src.application.use_cases.publish.publish_binary import open_storage
from src.domain.models.publication import UnpublishRequest, UnpublishResult
from src.infrastructure.storage.ports import StorageFactory

logger = logging.getLogger(__name__)


async def execute(request: UnpublishRequest, storage_factory: StorageFactory) -> UnpublishResult:
    storage = open_storage(storage_factory, request)
    key = request.key
    remote_package = request.public_url
    details = {"bucket": request.storage.bucket, "key": key}

    logger.info("Checking for existing binary at %s", remote_package)
    try:
        meta = await storage.head_object(key)
    except Exception as exc:
        raise RemoteCheckFailed(
            f"Could not check for existing binary at {remote_package}: {exc}", details=details
        ) from exc

    if meta is None:
        logger.info("[%s] Not found: %s", request.package_name, remote_package)
        return UnpublishResult(
            package_name=request.package_name,
            bucket=request.storage.bucket,
            key=key,
            url=remote_package,
            deleted=False,
        )

    try:
        await storage.delete_object(key)
    except Exception as exc:
        raise DeleteFailed(
            f"Failed removing {remote_package}: {exc}", details=details
        ) from exc

    logger.info("[%s] Success: removed %s", request.package_name, remote_package)
    return UnpublishResult(
        package_name=request.package_name,
        bucket=request.storage.bucket,
        key=key,
        url=remote_package,
        deleted=True,
    )
