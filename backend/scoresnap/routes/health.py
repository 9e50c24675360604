"""
ScoreSnap Web — Health Check Route
===================================

What:  Health check endpoint for monitoring and process manager liveness checks.
How:   Reports whether the Places credential is configured and whether the
       Places circuit breaker is open. No outbound call is made: probing
       Google every few seconds would spend quota.

Status levels:
    - healthy:   Places key configured and circuit closed (HTTP 200)
    - degraded:  key missing or circuit open (HTTP 200; pages still render)
"""

import logging
import time

from fastapi import APIRouter, Depends

from scoresnap import __version__
from scoresnap.config import get_places_api_key
from scoresnap.schemas.places import HealthResponse
from scoresnap.services.places_service import PlacesService, get_places_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    api_key: str = Depends(get_places_api_key),
    places: PlacesService = Depends(get_places_service),
) -> HealthResponse:
    places_status = places.health_status(api_key)
    overall = "healthy" if places_status == "configured" else "degraded"
    if overall != "healthy":
        logger.warning("Health check: places_api=%s", places_status)

    return HealthResponse(
        status=overall,
        version=__version__,
        places_api=places_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
