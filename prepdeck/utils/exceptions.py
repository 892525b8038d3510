"""
Application exception hierarchy.

Every error raised by the goal engine derives from PrepdeckError and carries
an HTTP status code plus a stable, machine-readable code. The API layer turns
these into ErrorResponse bodies; in-process callers can branch on the
exception type or on ``code``.

Copyright (C) 2025 Prepdeck
"""


class PrepdeckError(Exception):
    """
    Base class for all application errors.

    Attributes:
        message: User-facing message, safe to display
        status_code: HTTP status code the error maps to
        code: Application-specific error code
        detail: Optional internal detail (only exposed in debug mode)
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_SERVER_ERROR",
        detail: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.detail = detail


class UnauthorizedError(PrepdeckError):
    """The caller is not authenticated."""

    def __init__(self, message: str = "Authentication required", detail: str | None = None):
        super().__init__(message, status_code=401, code="UNAUTHORIZED", detail=detail)


class ResourceNotFoundError(PrepdeckError):
    """
    The resource does not exist for this owner.

    Raised both when the resource is absent and when it belongs to another
    user, so that callers cannot discover other users' ids.
    """

    def __init__(self, resource_type: str, resource_id: str, detail: str | None = None):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            status_code=404,
            code="RESOURCE_NOT_FOUND",
            detail=detail,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(PrepdeckError):
    """Invalid input (missing field, non-positive velocity, ...)."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message, status_code=400, code="VALIDATION_ERROR", detail=detail)


class PersistenceError(PrepdeckError):
    """The backing store failed to read or write."""

    def __init__(self, message: str = "The data store is unavailable", detail: str | None = None):
        super().__init__(message, status_code=503, code="PERSISTENCE_FAILURE", detail=detail)
