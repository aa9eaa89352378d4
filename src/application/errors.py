from __future__ import annotations

from typing import Any, Mapping


class AppError(Exception):
    code = "app_error"
    exit_code = 1

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(AppError):
    code = "configuration_error"


class MissingArtifact(AppError):
    code = "missing_artifact"


class CredentialResolutionFailed(AppError):
    code = "credential_resolution_failed"


class RemoteCheckFailed(AppError):
    code = "remote_check_failed"


class AlreadyPublished(AppError):
    code = "already_published"


class UploadFailed(AppError):
    code = "upload_failed"


class DeleteFailed(AppError):
    code = "delete_failed"
