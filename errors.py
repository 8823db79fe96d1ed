"""
Error taxonomy for keywarden and the FastAPI handlers that render it.

Services raise these and never HTTP exceptions. Each class fixes the HTTP
status and a stable machine-readable ``code``, so a caller can always tell
"does not exist" (not_found) from "exists but not yours" (forbidden) from
"the store is down" (infrastructure_error).

Response body:  {"error": <message>, "code": <code>[, "field": ...][, "details": ...]}
"""

from __future__ import annotations

from typing import Any, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return None

    def to_dict(self) -> dict:
        body: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            body["field"] = self.field
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Malformed input: bad id, bad permission name, blank required field."""

    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class IssuanceConflictError(ConflictError):
    """Every issuance attempt collided on the unique secret hash."""

    error_code = "issuance_conflict"


class InvalidStateError(AppError):
    """The target exists but its state forbids the operation (revoked, cascade too large)."""

    status_code = 422
    error_code = "invalid_state"


class InfrastructureError(AppError):
    status_code = 503
    error_code = "infrastructure_error"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error(
                "request_failed",
                path=request.url.path,
                code=exc.error_code,
                error=exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.exception("request_unhandled_exception", path=request.url.path)
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content={"error": "internal server error", "code": AppError.error_code},
        )
