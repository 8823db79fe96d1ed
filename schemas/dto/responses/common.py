"""
Response shapes shared by every router: the error body and the health report.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body rendered from AppError.to_dict(); used for OpenAPI ``responses=``."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(description="Human-readable message; never contains a secret")
    code: str = Field(description="Stable code, e.g. not_found, forbidden, invalid_state")
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["healthy", "unhealthy"]
    checks: dict[str, str]


# Attached to routers so the OpenAPI schema documents the error body.
AUTH_ERROR_RESPONSES: dict[int, dict] = {
    401: {"model": ErrorResponse, "description": "Missing, unknown or revoked API key"},
    403: {"model": ErrorResponse, "description": "Authenticated but not permitted"},
    404: {"model": ErrorResponse, "description": "Target does not exist"},
}
