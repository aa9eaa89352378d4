"""Upload a packaged binary unless its key is already taken.

Steps run strictly in order: local check, storage/credential resolution,
head-check, put. Nothing is retried, and cancelling the put counts as a
failed upload. Two publishers racing on the same key can both pass the
head-check; the last put wins.
"""

from __future__ import annotations

import asyncio
import logging

from src.application.errors import (
    AlreadyPublished,
    CredentialResolutionFailed,
    MissingArtifact,
    RemoteCheckFailed,
    UploadFailed,
)
from src.domain.models.publication import (
    PublishRequest,
    PublishResult,
    UnpublishRequest,
)
from src.infrastructure.storage.ports import ObjectStorage, StorageFactory

logger = logging.getLogger(__name__)


def open_storage(
    storage_factory: StorageFactory, request: PublishRequest | UnpublishRequest
) -> ObjectStorage:
    try:
        return storage_factory(request.storage)
    except CredentialResolutionFailed:
        raise
    except Exception as exc:
        raise CredentialResolutionFailed(f"Could not set up storage client: {exc}") from exc


async def execute(request: PublishRequest, storage_factory: StorageFactory) -> PublishResult:
    tarball = request.artifact_path
    if not tarball.is_file():
        raise MissingArtifact(
            f"Cannot publish because {tarball} missing: run the package step first",
            details={"path": str(tarball)},
        )

    storage = open_storage(storage_factory, request)
    key = request.key
    remote_package = request.public_url
    details = {"bucket": request.storage.bucket, "key": key}

    logger.info("Checking for existing binary at %s", remote_package)
    try:
        meta = await storage.head_object(key)
    except Exception as exc:
        logger.info("s3 headObject error: %s", exc)
        raise RemoteCheckFailed(
            f"Could not check for existing binary at {remote_package}: {exc}", details=details
        ) from exc

    if meta is not None:
        logger.info("Found existing object: %s", meta)
        logger.error("Cannot publish over existing version")
        logger.error("Update the 'version' field of %s and try again", request.package_name)
        logger.error("If the previous version was published in error, unpublish it first")
        raise AlreadyPublished(
            f"Failed publishing to {remote_package}: a binary already exists there. "
            "Bump the version or unpublish the existing binary before retrying",
            details=details,
        )

    logger.info("Putting object acl=%s bucket=%s key=%s", request.storage.acl, storage.bucket, key)
    try:
        with tarball.open("rb") as body:
            response = await storage.put_object(key, body, acl=request.storage.acl)
    except asyncio.CancelledError as exc:
        logger.info("s3 putObject cancelled: %s", remote_package)
        raise UploadFailed(
            f"Upload of {tarball} to {remote_package} was cancelled", details=details
        ) from exc
    except Exception as exc:
        logger.info("s3 putObject error: %s", exc)
        raise UploadFailed(
            f"Failed uploading {tarball} to {remote_package}: {exc}", details=details
        ) from exc

    if response:
        logger.debug("s3 putObject response: %s", response)
    logger.info("[%s] published to %s", request.package_name, remote_package)
    return PublishResult(
        package_name=request.package_name,
        bucket=request.storage.bucket,
        key=key,
        url=remote_package,
    )
