"""
Command line entry point.

Usage:
  binary-publish publish build/stage/addon-v1.2.0-linux-x64.tar.gz --name addon \\
      --hosted-path https://my-bucket.s3.amazonaws.com/addon/v1.2.0/
  binary-publish unpublish --name addon --filename addon-v1.2.0-linux-x64.tar.gz \\
      --bucket my-bucket --prefix addon/v1.2.0/

Storage options fall back to the environment (S3_BUCKET, S3_HOSTED_PATH, ...)
and a local .env file.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from src.application.errors import AppError, ConfigurationError
from src.application.use_cases.publish import publish_binary, unpublish_binary
from src.config.settings import Settings, get_settings
from src.domain.models.publication import PublishRequest, UnpublishRequest
from src.infrastructure.storage.ports import StorageFactory
from src.infrastructure.storage.s3_setup import create_s3_storage, resolve_storage_config

logger = logging.getLogger(__name__)

# CLI flag -> Settings field
OVERRIDES = {
    "hosted_path": "s3_hosted_path",
    "bucket": "s3_bucket",
    "region": "s3_region",
    "prefix": "s3_prefix",
    "acl": "s3_acl",
    "endpoint_url": "s3_endpoint_url",
    "profile": "aws_profile",
    "log_level": "log_level",
}


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
    # boto logs request internals below WARNING
    for name in ("boto3", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def _add_storage_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", required=True, help="Package name, used in messages")
    parser.add_argument("--hosted-path", help="Hosted URL, e.g. https://bucket.s3.amazonaws.com/prefix/")
    parser.add_argument("--bucket", help="Bucket name (overrides --hosted-path)")
    parser.add_argument("--prefix", help="Key prefix (overrides --hosted-path)")
    parser.add_argument("--region", help="Bucket region")
    parser.add_argument("--acl", help="Canned ACL for the uploaded object")
    parser.add_argument("--endpoint-url", help="Custom S3-compatible endpoint")
    parser.add_argument("--profile", help="AWS profile to take credentials from")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binary-publish",
        description="Publish prebuilt binaries to S3 without overwriting existing versions",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    publish = commands.add_parser("publish", help="Upload a packaged tarball")
    publish.add_argument("tarball", type=Path, help="Path to the packaged tarball")
    publish.add_argument("--filename", help="Remote file name (default: the tarball's name)")
    _add_storage_options(publish)

    unpublish = commands.add_parser("unpublish", help="Remove a published tarball")
    unpublish.add_argument("--filename", required=True, help="Remote file name to remove")
    _add_storage_options(unpublish)
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    update = {
        field: getattr(args, flag)
        for flag, field in OVERRIDES.items()
        if getattr(args, flag, None) is not None
    }
    return settings.model_copy(update=update) if update else settings


async def run_command(
    args: argparse.Namespace, settings: Settings, storage_factory: StorageFactory
) -> str:
    storage = resolve_storage_config(settings)
    if args.command == "publish":
        request = PublishRequest(
            package_name=args.name,
            artifact_path=args.tarball,
            filename=args.filename or args.tarball.name,
            storage=storage,
        )
        result = await publish_binary.execute(request, storage_factory)
        return f"[{result.package_name}] published to {result.url}"

    unpublish_request = UnpublishRequest(
        package_name=args.name, filename=args.filename, storage=storage
    )
    removed = await unpublish_binary.execute(unpublish_request, storage_factory)
    if removed.deleted:
        return f"[{removed.package_name}] removed {removed.url}"
    return f"[{removed.package_name}] nothing to remove at {removed.url}"


def _report(error: AppError) -> int:
    print(f"❌ {error.message}", file=sys.stderr)
    return error.exit_code


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    storage_factory: StorageFactory = create_s3_storage,
) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = apply_overrides(settings or get_settings(), args)
    except ValidationError as exc:
        return _report(ConfigurationError(f"Invalid configuration: {exc}"))
    _configure_logging(settings.log_level)

    try:
        message = asyncio.run(run_command(args, settings, storage_factory))
    except AppError as exc:
        logger.debug("Command failed", exc_info=exc)
        return _report(exc)
    except KeyboardInterrupt:
        print("❌ Interrupted", file=sys.stderr)
        return 130

    print(f"✅ {message}")
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
