from __future__ import annotations

from urllib.parse import urljoin

S3_PUBLIC_DOMAIN = "s3.amazonaws.com"


def join_key(prefix: str, filename: str) -> str:
    """Resolve ``filename`` relative to ``prefix`` the way a URL path would.

    A prefix without a trailing slash has its last segment replaced, so
    ``"pkg/v1"`` + ``"a.tgz"`` gives ``"pkg/a.tgz"``.
    """
    if not prefix:
        return filename
    return urljoin(prefix, filename)


def public_url(bucket: str, key: str, *, base: str | None = None) -> str:
    if base:
        return f"{base.rstrip('/')}/{key}"
    return f"https://{bucket}.{S3_PUBLIC_DOMAIN}/{key}"
