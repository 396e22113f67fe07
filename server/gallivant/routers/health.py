"""Health check router."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..core.exceptions import StorageUnavailableError
from ..core.observability import SERVICE_NAME, SERVICE_VERSION
from ..schemas.health import HealthResponse, HealthStatus, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.post("/v1/health/ping", response_model=HealthResponse)
async def health_ping() -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status and timestamp.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        timestamp=datetime.now(timezone.utc),
        version=SERVICE_VERSION
    )

    logger.debug(
        "Health check requested",
        extra={
            "status": response_data.status,
            "timestamp": response_data.timestamp.isoformat()
        }
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> JSONResponse:
    """
    Readiness check that pings the database.

    Answers 503 while the store is unreachable.
    """
    try:
        await request.app.state.database.ping()
    except StorageUnavailableError as e:
        logger.warning("Readiness check failed", extra={"error": e.problem_details.get("detail")})
        response_data = ReadinessResponse(
            status=HealthStatus.UNAVAILABLE,
            service=SERVICE_NAME,
            checks={"database": "unavailable"},
        )
        return JSONResponse(status_code=503, content=response_data.model_dump(mode="json"))

    response_data = ReadinessResponse(
        status=HealthStatus.READY,
        service=SERVICE_NAME,
        checks={"database": "ok"},
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
