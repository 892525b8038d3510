"""
Error body returned by every failing API call.

Copyright (C) 2025 Prepdeck
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """
    JSON shape of an API error.

    ``code`` is stable and meant for programs; ``message`` is meant for
    people. ``detail`` is only filled in when the app runs with DEBUG.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status_code": 404,
                "code": "RESOURCE_NOT_FOUND",
                "message": "Goal 'g_123' not found",
            }
        }
    )

    status_code: int = Field(..., description="HTTP status code")
    code: str = Field(
        ...,
        description="UNAUTHORIZED, RESOURCE_NOT_FOUND, VALIDATION_ERROR, "
        "PERSISTENCE_FAILURE or INTERNAL_SERVER_ERROR",
    )
    message: str = Field(..., description="Human-readable message, safe to display")
    detail: str | None = Field(None, description="Internal detail (debug mode only)")
