"""Resolve where and how to talk to S3.

Bucket, region and prefix can come from a single hosted URL (the form a
package advertises its binaries under) or from explicit settings; explicit
settings win. Credentials come from the standard AWS provider chain
(environment, shared config/credentials files, SSO, instance or task role).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ProfileNotFound

from src.application.errors import ConfigurationError, CredentialResolutionFailed
from src.config.settings import Settings
from src.domain.models.publication import StorageConfig
from src.infrastructure.storage.s3 import S3StorageService

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


@dataclass(slots=True)
class HostedLocation:
    bucket: str
    region: str
    prefix: str = ""


def detect(hosted_path: str) -> HostedLocation | None:
    """Parse a virtual-hosted S3 URL into bucket, region and prefix.

    ``https://b.s3.amazonaws.com/x/`` -> (b, us-east-1, x/)
    ``https://b.s3-us-west-1.amazonaws.com/`` -> (b, us-west-1, "")
    ``https://b.s3.eu-west-2.amazonaws.com/x/`` -> (b, eu-west-2, x/)
    ``https://b.s3.dualstack.us-west-2.amazonaws.com/`` -> (b, us-west-2, "")

    The last ``s3`` label separates bucket from endpoint, so bucket names
    may contain dots and ``s3`` themselves.
    """
    uri = urlparse(hosted_path)
    labels = (uri.hostname or "").split(".")
    endpoint_at = None
    for index, label in enumerate(labels):
        if label == "s3" or label.startswith("s3-"):
            endpoint_at = index
    if not endpoint_at:
        return None
    bucket = ".".join(labels[:endpoint_at])
    endpoint = labels[endpoint_at]
    if endpoint.startswith("s3-"):
        region = endpoint[len("s3-") :]
    else:
        rest = [label for label in labels[endpoint_at + 1 :] if label != "dualstack"]
        region = rest[0] if rest else ""
    if not region or region == "amazonaws":
        region = DEFAULT_REGION
    prefix = "" if uri.path in ("", "/") else uri.path.lstrip("/")
    return HostedLocation(bucket=bucket, region=region, prefix=prefix)


def resolve_storage_config(settings: Settings) -> StorageConfig:
    detected = detect(settings.s3_hosted_path) if settings.s3_hosted_path else None
    if settings.s3_hosted_path and detected is None:
        logger.warning("Could not detect an S3 bucket from %s", settings.s3_hosted_path)

    bucket = settings.s3_bucket or (detected.bucket if detected else None)
    if not bucket:
        raise ConfigurationError(
            "No S3 bucket configured: set S3_BUCKET or an S3_HOSTED_PATH such as "
            "https://<bucket>.s3.amazonaws.com/<prefix>/"
        )
    region = settings.s3_region or (detected.region if detected else None)
    if settings.s3_prefix is not None:
        prefix = settings.s3_prefix.lstrip("/")
    else:
        prefix = detected.prefix if detected else ""

    return StorageConfig(
        bucket=bucket,
        region=region,
        prefix=prefix,
        acl=settings.s3_acl,
        endpoint_url=settings.s3_endpoint_url,
        force_path_style=settings.s3_force_path_style,
        profile=settings.aws_profile,
        public_url_base=settings.s3_public_url_base,
    )


def create_s3_storage(config: StorageConfig) -> S3StorageService:
    logger.info("Detecting s3 credentials")
    try:
        session = boto3.session.Session(profile_name=config.profile, region_name=config.region)
        credentials = session.get_credentials()
    except ProfileNotFound as exc:
        raise CredentialResolutionFailed(str(exc), details={"profile": config.profile}) from exc
    except BotoCoreError as exc:
        raise CredentialResolutionFailed(f"Could not load AWS credentials: {exc}") from exc
    if credentials is None:
        raise CredentialResolutionFailed(
            "No AWS credentials found: set AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY, "
            "configure a profile, or run with an IAM role"
        )

    options: dict = {"retries": {"total_max_attempts": 1}}
    if config.force_path_style:
        options["s3"] = {"addressing_style": "path"}
    client = session.client("s3", endpoint_url=config.endpoint_url, config=Config(**options))
    logger.info(
        "Authenticating with s3: bucket=%s region=%s endpoint=%s",
        config.bucket,
        session.region_name or "-",
        config.endpoint_url or "default",
    )
    return S3StorageService(bucket=config.bucket, region=config.region, client=client)
