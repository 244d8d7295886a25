"""
List Scanner Backend — Health Check Route
==========================================

What:  Reports whether the service can do its job end-to-end.

    - healthy:   database reachable and OCR engine available   (HTTP 200)
    - degraded:  database reachable, OCR engine down or circuit open
                 (HTTP 200; lists can still be edited)
    - unhealthy: database unreachable                           (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from listscanner import __version__
from listscanner.routes.dependencies import AppServices, get_services
from listscanner.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(services: AppServices = Depends(get_services)):
    db_status = "connected"
    ocr_status = "available"
    overall = "healthy"

    try:
        async with services.store.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    breaker = getattr(services.ocr_engine, "circuit_breaker", None)
    if breaker is not None and breaker.state == breaker.OPEN:
        ocr_status = "circuit_open"
    elif not await services.ocr_engine.health_check():
        ocr_status = "unavailable"

    if ocr_status != "available" and overall == "healthy":
        overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        ocr=ocr_status,
        live_queries=services.store.subscription_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
