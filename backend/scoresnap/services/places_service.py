"""
ScoreSnap Web — Google Places Photo Service
============================================

What:  Resolves a Google Place ID to the external URL of its first photo.
Why:   Photo URLs need a `photo_reference`, which only the Place Details API
       knows, and both calls need the API key. Doing the lookup here keeps
       the key off the client; the route then redirects the browser to the
       photo URL, so image bytes never pass through our server.
How:   One Place Details call (fields=photos) through a shared
       httpx.AsyncClient, with tenacity retries for transport failures and a
       circuit breaker so a Google outage fails fast instead of piling up
       slow requests.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transport errors
    2. Circuit breaker around the whole lookup
    3. httpx timeout per attempt
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx
from fastapi import Request
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from scoresnap.config import Settings, settings
from scoresnap.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    NotFoundError,
    PhotoFetchError,
    scrub_secret,
)
from scoresnap.schemas.places import PhotoRequest
from scoresnap.services.places_urls import encode_uri_component

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding calls to the Places API.

    State Machine:
        CLOSED    → failures counted; at threshold → OPEN
        OPEN      → calls rejected with CircuitBreakerOpenError;
                    after recovery_timeout → HALF_OPEN
        HALF_OPEN → one call allowed; success → CLOSED, failure → OPEN

    Not thread-safe. uvicorn async workers share a single process and the
    counters are only touched from the event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = max(int(self.recovery_timeout - elapsed), 1)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Places Service
# ══════════════════════════════════════════════════════════════════════════

def first_photo_reference(data: Dict[str, Any]) -> Optional[str]:
    """
    The `photo_reference` of the first photo in a Place Details body.

    Returns None when the place has no photos. Raises ValueError when the
    body does not have the documented shape.
    """
    result = data.get("result") or {}
    if not isinstance(result, dict):
        raise ValueError("Unexpected Place Details result")

    photos = result.get("photos") or []
    if not isinstance(photos, list):
        raise ValueError("Unexpected Place Details photos")
    if not photos:
        return None

    first = photos[0]
    if not isinstance(first, dict):
        raise ValueError("Unexpected Place Details photo entry")

    reference = first.get("photo_reference")
    if reference is not None and not isinstance(reference, str):
        raise ValueError("Unexpected photo_reference")
    return reference or None


class PlacesService:
    """
    Place Details → photo URL resolution.

    Error Handling Chain:
        transport error → tenacity retries (retry_max_attempts, backoff)
        → still failing → circuit breaker failure, PhotoFetchError (500)
        → body is not the shape we expect → same as a transport failure
        → Places answers but has no photo → NotFoundError (404), which does
          NOT count against the circuit breaker: Google is healthy.

    One instance per app (create_app stores it on app.state), built from
    that app's Settings. The retry policy is read from the process-wide
    settings when this module is imported.
    """

    def __init__(
        self,
        app_settings: Settings = settings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = app_settings.maps_api_base_url
        self.timeout = app_settings.http_timeout
        self._client = client
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=app_settings.cb_failure_threshold,
            recovery_timeout=app_settings.cb_recovery_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        # Created lazily so building an app never opens sockets
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_photo_url(self, photo_reference: str, max_width: int, api_key: str) -> str:
        return (
            f"{self.base_url}/place/photo"
            f"?maxwidth={max_width}"
            f"&photo_reference={encode_uri_component(photo_reference)}"
            f"&key={encode_uri_component(api_key)}"
        )

    async def get_photo_url(self, photo_request: PhotoRequest, api_key: str) -> str:
        """
        Resolve the external photo URL for a place.

        Raises:
            ConfigurationError:      api_key is empty
            CircuitBreakerOpenError: too many recent upstream failures
            NotFoundError:           place has no photo (or Places said not OK)
            PhotoFetchError:         transport/decoding failure after retries
        """
        if not api_key:
            raise ConfigurationError()

        self.circuit_breaker.can_execute()

        try:
            data = await self._fetch_place_details(photo_request.place_id, api_key)
            status = data.get("status")
            photo_reference = first_photo_reference(data) if status == "OK" else None
        except (httpx.HTTPError, ValueError) as e:
            self.circuit_breaker.record_failure()
            message = scrub_secret(str(e) or type(e).__name__, api_key)
            logger.error("Place Details lookup failed: %s", message)
            raise PhotoFetchError(details=message, context={"error_type": type(e).__name__})

        self.circuit_breaker.record_success()

        if not photo_reference:
            logger.info("No photo available for place (status=%s)", status)
            raise NotFoundError(
                message="No photo available",
                details=data.get("error_message") or f"Status: {status}",
            )

        return self.build_photo_url(photo_reference, photo_request.max_width, api_key)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            multiplier=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _fetch_place_details(self, place_id: str, api_key: str) -> Dict[str, Any]:
        """
        One Place Details request, retried on transport errors only.

        Returns the decoded JSON body. Places reports most failures as
        HTTP 200 with a non-OK `status`, so that is left to the caller.
        """
        start_time = time.time()
        response = await self.client.get(
            f"{self.base_url}/place/details/json",
            params={"place_id": place_id, "fields": "photos", "key": api_key},
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Unexpected Place Details response body")

        logger.debug(
            "Place Details answered %s in %.0fms",
            data.get("status"),
            (time.time() - start_time) * 1000,
        )
        return data

    def health_status(self, api_key: str) -> str:
        """configured / not_configured / circuit_open, for GET /health."""
        if not api_key:
            return "not_configured"
        if self.circuit_breaker.state == CircuitBreaker.OPEN:
            return "circuit_open"
        return "configured"


def get_places_service(request: Request) -> PlacesService:
    """
    FastAPI dependency returning the app's PlacesService.

    The instance lives on app.state: its circuit breaker and HTTP connection
    pool must outlive a single request.
    """
    return request.app.state.places_service
