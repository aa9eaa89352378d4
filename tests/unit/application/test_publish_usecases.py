from __future__ import annotations

import asyncio
import logging

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from src.application.errors import (
    AlreadyPublished,
    CredentialResolutionFailed,
    MissingArtifact,
    RemoteCheckFailed,
    UploadFailed,
)
from src.application.use_cases.publish import publish_binary
from src.domain.models.publication import PublishRequest
from tests.stubs import StubStorage, StubStorageFactory

URL = "https://my-bucket.s3.amazonaws.com/pkg/v1/addon.tar.gz"


def make_request(artifact, storage_config) -> PublishRequest:
    return PublishRequest(
        package_name="addon",
        artifact_path=artifact,
        filename="addon.tar.gz",
        storage=storage_config,
    )


def published_lines(caplog) -> list[str]:
    return [r.getMessage() for r in caplog.records if "published to" in r.getMessage()]


@pytest.mark.asyncio
async def test_missing_artifact_makes_no_remote_calls(tmp_path, storage_config):
    factory = StubStorageFactory()
    request = make_request(tmp_path / "missing.tar.gz", storage_config)

    with pytest.raises(MissingArtifact) as exc_info:
        await publish_binary.execute(request, factory)

    assert str(tmp_path / "missing.tar.gz") in exc_info.value.message
    assert "package" in exc_info.value.message
    assert factory.configs == []
    assert factory.storage.calls == []


@pytest.mark.asyncio
async def test_existing_object_is_never_overwritten(artifact, storage_config):
    storage = StubStorage(existing={"pkg/v1/addon.tar.gz": b"old"})

    with pytest.raises(AlreadyPublished) as exc_info:
        await publish_binary.execute(make_request(artifact, storage_config), StubStorageFactory(storage))

    assert storage.calls_named("put") == []
    assert storage.objects["pkg/v1/addon.tar.gz"] == b"old"
    assert "version" in exc_info.value.message
    assert "unpublish" in exc_info.value.message


@pytest.mark.asyncio
async def test_not_found_uploads_once_with_bucket_key_and_acl(artifact, storage_config):
    storage = StubStorage()

    await publish_binary.execute(make_request(artifact, storage_config), StubStorageFactory(storage))

    assert storage.calls_named("put") == [("put", "my-bucket", "pkg/v1/addon.tar.gz", "public-read")]
    assert storage.objects["pkg/v1/addon.tar.gz"] == artifact.read_bytes()


@pytest.mark.asyncio
async def test_head_check_precedes_upload(artifact, storage_config):
    storage = StubStorage()

    await publish_binary.execute(make_request(artifact, storage_config), StubStorageFactory(storage))

    assert [call[0] for call in storage.calls] == ["head", "put"]


@pytest.mark.asyncio
async def test_upload_failure_is_wrapped_and_not_reported_as_success(
    artifact, storage_config, caplog
):
    caplog.set_level(logging.INFO)
    boom = EndpointConnectionError(endpoint_url="https://my-bucket.s3.amazonaws.com")
    storage = StubStorage(put_error=boom)

    with pytest.raises(UploadFailed) as exc_info:
        await publish_binary.execute(make_request(artifact, storage_config), StubStorageFactory(storage))

    assert exc_info.value.__cause__ is boom
    assert len(storage.calls_named("put")) == 1
    assert published_lines(caplog) == []


@pytest.mark.asyncio
async def test_head_error_other_than_not_found_is_wrapped(artifact, storage_config):
    denied = ClientError({"Error": {"Code": "403", "Message": "Forbidden"}}, "HeadObject")
    storage = StubStorage(head_error=denied)

    with pytest.raises(RemoteCheckFailed) as exc_info:
        await publish_binary.execute(make_request(artifact, storage_config), StubStorageFactory(storage))

    assert exc_info.value.__cause__ is denied
    assert storage.calls_named("put") == []


@pytest.mark.asyncio
async def test_successful_publish_returns_url_and_logs_once(artifact, storage_config, caplog):
    caplog.set_level(logging.INFO)
    storage = StubStorage()

    result = await publish_binary.execute(
        make_request(artifact, storage_config), StubStorageFactory(storage)
    )

    assert result.url == URL
    assert result.key == "pkg/v1/addon.tar.gz"
    assert result.bucket == "my-bucket"
    assert published_lines(caplog) == [f"[addon] published to {URL}"]


@pytest.mark.asyncio
async def test_credential_failure_propagates_without_remote_calls(artifact, storage_config):
    error = CredentialResolutionFailed("No AWS credentials found")
    factory = StubStorageFactory(error=error)

    with pytest.raises(CredentialResolutionFailed) as exc_info:
        await publish_binary.execute(make_request(artifact, storage_config), factory)

    assert exc_info.value is error
    assert factory.storage.calls == []


@pytest.mark.asyncio
async def test_unexpected_factory_error_becomes_credential_failure(artifact, storage_config):
    factory = StubStorageFactory(error=ValueError("bad endpoint"))

    with pytest.raises(CredentialResolutionFailed) as exc_info:
        await publish_binary.execute(make_request(artifact, storage_config), factory)

    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_concurrent_publishes_of_same_key_are_not_coordinated(artifact, storage_config):
    # Known gap: head-check then put is not atomic, so both publishers see
    # a free key and the last put wins instead of one getting AlreadyPublished.
    storage = StubStorage(yield_after_head=True)
    factory = StubStorageFactory(storage)
    request = make_request(artifact, storage_config)

    results = await asyncio.gather(
        publish_binary.execute(request, factory),
        publish_binary.execute(request, factory),
    )

    assert [r.url for r in results] == [URL, URL]
    assert len(storage.calls_named("put")) == 2


@pytest.mark.asyncio
async def test_directory_artifact_is_treated_as_missing(tmp_path, storage_config):
    factory = StubStorageFactory()
    stage_dir = tmp_path / "stage"
    stage_dir.mkdir()

    with pytest.raises(MissingArtifact):
        await publish_binary.execute(make_request(stage_dir, storage_config), factory)

    assert factory.configs == []
    assert factory.storage.calls == []


@pytest.mark.asyncio
async def test_cancelled_upload_fails_as_upload_failed(artifact, storage_config, caplog):
    caplog.set_level(logging.INFO)
    storage = StubStorage(put_delay=10)
    task = asyncio.create_task(
        publish_binary.execute(make_request(artifact, storage_config), StubStorageFactory(storage))
    )
    await asyncio.wait_for(storage.put_started.wait(), timeout=5)

    task.cancel()
    with pytest.raises(UploadFailed) as exc_info:
        await task

    assert isinstance(exc_info.value.__cause__, asyncio.CancelledError)
    assert "cancelled" in exc_info.value.message
    assert "pkg/v1/addon.tar.gz" not in storage.objects
    assert published_lines(caplog) == []
