"""
ScoreSnap Web — Places Proxy Route Handlers
============================================

What:  GET /api/places/static-map and GET /api/places/photo.
Why:   Pages link here (see services/places_urls.py) so the Google API key
       never reaches the browser.
How:   Validate the query string, ask the matching service for the external
       URL, answer 302 with that URL in Location. The browser then fetches
       the image from Google directly; we never stream image bytes.

Error responses (handled by global exception handlers in main.py):
    HTTP 400: missing/invalid query parameter (ValidationError)
    HTTP 404: place has no photo (NotFoundError)
    HTTP 500: key not configured (ConfigurationError) or URL
              construction/lookup failed (MapGenerationError, PhotoFetchError)
    HTTP 503: Places circuit breaker open (CircuitBreakerOpenError)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from scoresnap.config import Settings, get_places_api_key, get_settings
from scoresnap.exceptions import ConfigurationError
from scoresnap.schemas.places import ErrorResponse, PhotoRequest, StaticMapRequest
from scoresnap.services.places_service import PlacesService, get_places_service
from scoresnap.services.static_map_service import StaticMapService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/places", tags=["Places"])

_ERROR_RESPONSES = {
    400: {"description": "Missing or invalid query parameter", "model": ErrorResponse},
    500: {"description": "API key not configured or URL construction failed", "model": ErrorResponse},
}


@router.get(
    "/static-map",
    status_code=302,
    response_class=RedirectResponse,
    responses={302: {"description": "Redirect to the Google Static Maps image"}, **_ERROR_RESPONSES},
    summary="Redirect to a static map image for an address",
)
async def static_map(
    address: Optional[str] = Query(default=None, description="Address to center on"),
    width: Optional[str] = Query(default=None, description="Image width in pixels (default 800)"),
    height: Optional[str] = Query(default=None, description="Image height in pixels (default 400)"),
    api_key: str = Depends(get_places_api_key),
    app_settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Redirect to a Google Static Maps image centered on `address` with a red
    marker on it.

    The address check comes first: without one the answer is always
    400 `{"error": "address is required"}`, whatever else is wrong.
    """
    map_request = StaticMapRequest.from_query(address, width, height)

    if not api_key:
        logger.error("Static map requested but GOOGLE_PLACES_API_KEY is not configured")
        raise ConfigurationError()

    target = StaticMapService(app_settings).build_url(map_request, api_key)
    return RedirectResponse(url=target, status_code=302)


@router.get(
    "/photo",
    status_code=302,
    response_class=RedirectResponse,
    responses={
        302: {"description": "Redirect to the Google Places photo"},
        404: {"description": "Place has no photo", "model": ErrorResponse},
        503: {"description": "Places service circuit open", "model": ErrorResponse},
        **_ERROR_RESPONSES,
    },
    summary="Redirect to the first photo of a place",
)
async def place_photo(
    place_id: Optional[str] = Query(default=None, description="Google Place ID"),
    maxwidth: Optional[str] = Query(default=None, description="Max photo width (default 800)"),
    api_key: str = Depends(get_places_api_key),
    places: PlacesService = Depends(get_places_service),
) -> RedirectResponse:
    """
    Look up the place's first photo reference and redirect to the photo.

    Costs one Place Details call per request; the browser caches the
    redirect target like any other image.
    """
    photo_request = PhotoRequest.from_query(place_id, maxwidth)

    if not api_key:
        logger.error("Place photo requested but GOOGLE_PLACES_API_KEY is not configured")
        raise ConfigurationError()

    target = await places.get_photo_url(photo_request, api_key)
    return RedirectResponse(url=target, status_code=302)
