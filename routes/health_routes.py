"""
Health check endpoint.

GET /health — checks MongoDB connectivity and email provider configuration.
Rules:
- MongoDB failure → "unhealthy" (503).
- Email API token missing → "degraded" (200): accounts still work, but no
  verification or reset email will be delivered.
- Otherwise → "healthy" (200).
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        db = request.app.state.db
        await db.client.admin.command("ping")
        checks["mongodb"] = "ok"
    except Exception as e:
        log.error("health_check_mongodb_failed", error=str(e))
        checks["mongodb"] = "error"
        overall = "unhealthy"

    settings = request.app.state.settings
    if settings.email.zepto_api_token:
        checks["email"] = "ok"
    else:
        checks["email"] = "not_configured"
        if overall == "healthy":
            overall = "degraded"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content=HealthResponse(status=overall, checks=checks).model_dump(),
    )
