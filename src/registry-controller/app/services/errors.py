"""Errors raised by the registry controller services."""

from __future__ import annotations

from typing import Any

from shared.models import ErrorResponse
from shared.observability import operation_id_var


class ErrorCode:
    """Machine-readable error codes."""

    STATUS_ERROR_GENERIC = "STATUS_ERROR_GENERIC"
    ILLEGAL_OPERATION = "ILLEGAL_OPERATION"
    SECRET_VERSION_CONFLICT = "SECRET_VERSION_CONFLICT"


class RegistryControllerError(Exception):
    """Base class for errors the controller raises itself.

    Failures of collaborators (cluster API, state store, certificate
    issuance) are not wrapped and propagate as raised.
    """

    code: str = ErrorCode.STATUS_ERROR_GENERIC

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.code,
            message=self.message,
            details=self.details,
            operation_id=operation_id_var.get(),
        )


class IllegalOperationError(RegistryControllerError):
    """Raised when an operation's precondition does not hold."""

    code = ErrorCode.ILLEGAL_OPERATION


class InvalidAuthInputError(RegistryControllerError):
    """Raised when credential rotation is called with missing inputs."""

    code = ErrorCode.STATUS_ERROR_GENERIC


class SecretVersionConflictError(RegistryControllerError):
    """Raised when too many consecutive auth secret versions already exist."""

    code = ErrorCode.SECRET_VERSION_CONFLICT
