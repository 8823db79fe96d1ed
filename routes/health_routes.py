"""
GET /health: liveness plus a MongoDB ping.

The service cannot issue, verify or revoke anything without the store, so a
failed ping is "unhealthy" (503). The transactions check reports whether
cascades are running with multi-document transactions.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        request.app.state.db.client.admin.command("ping")
        checks["mongodb"] = "ok"
    except PyMongoError as e:
        log.warning("health_mongo_ping_failed", error=str(e))
        checks["mongodb"] = "error"

    settings = getattr(request.app.state, "settings", None)
    if settings is not None:
        checks["transactions"] = "enabled" if settings.db.use_transactions else "disabled"

    report = HealthResponse(
        status="healthy" if checks["mongodb"] == "ok" else "unhealthy",
        checks=checks,
    )
    return JSONResponse(
        status_code=200 if report.status == "healthy" else 503,
        content=report.model_dump(),
    )
