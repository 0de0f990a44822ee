from __future__ import annotations

from typing import Any


class PortalError(Exception):
    """Base error for ClientPortal."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InputValidationError(PortalError):
    """Malformed or missing input fields; carries the field-level violations."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, errors: list[dict[str, Any]]) -> None:
        super().__init__(message, details={"errors": errors})
        self.errors = errors


class UnauthenticatedError(PortalError):
    """No valid principal for an owner-scoped operation."""

    status_code = 401
    code = "AUTH_UNAUTHORIZED"


class ForbiddenError(PortalError):
    """Valid principal, but the target belongs to someone else."""

    status_code = 403
    code = "AUTH_FORBIDDEN"


class NotFoundError(PortalError):
    """Target entity or a required parent does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class IntegrityConflictError(PortalError):
    """Mutation would break a cross-entity consistency rule."""

    status_code = 409
    code = "CONFLICT"


class StorageError(PortalError):
    """Storage backend failure."""

    status_code = 500
    code = "STORAGE_UNAVAILABLE"


class BlobNotFoundError(NotFoundError):
    """File metadata exists but its blob is gone."""


class BlobTooLargeError(PortalError):
    """Upload exceeded the blob store size limit."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, limit_bytes: int) -> None:
        message = f"File exceeds the {limit_bytes} byte upload limit"
        super().__init__(
            message,
            details={"errors": [{"loc": ["body", "file"], "msg": message, "type": "too_large"}]},
        )
        self.limit_bytes = limit_bytes
