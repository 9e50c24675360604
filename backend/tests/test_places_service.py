"""
ScoreSnap Web — Places Photo Service Tests (Mocked)
====================================================

What:  PlacesService, its CircuitBreaker, and GET /api/places/photo.
How:   The Place Details API is faked with httpx.MockTransport (see
       conftest.FakePlacesAPI); no network access.

What we test:
    ✅ Photo reference → external photo URL → 302
    ✅ No photo / non-OK status → 404 with details
    ✅ Transport failures are retried, then reported as 500
    ✅ Circuit breaker opens after consecutive failures and resets
    ❌ Real API calls
"""

import time

import httpx
import pytest
from tenacity import wait_none

from scoresnap.config import get_places_api_key
from scoresnap.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    NotFoundError,
    PhotoFetchError,
)
from scoresnap.schemas.places import PhotoRequest
from scoresnap.services.places_service import (
    CircuitBreaker,
    PlacesService,
    first_photo_reference,
)

KEY = "test-places-key-not-real"


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Skip tenacity's backoff sleeps between Place Details attempts."""
    monkeypatch.setattr(PlacesService._fetch_place_details.retry, "wait", wait_none())


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute() is True

    def test_open_circuit_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.state == "open"

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_failure_while_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)
        cb.can_execute()

        cb.record_failure()
        assert cb.state == "open"

    def test_success_resets(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)
        cb.can_execute()

        cb.record_success()
        assert cb.state == "closed"
        assert cb.failure_count == 0


class TestPlacesService:

    @pytest.mark.asyncio
    async def test_get_photo_url(self, places, places_handler):
        url = await places.get_photo_url(PhotoRequest(place_id="place 1", max_width=400), KEY)

        assert url == (
            "https://maps.googleapis.com/maps/api/place/photo"
            f"?maxwidth=400&photo_reference=photo-ref-123&key={KEY}"
        )
        request = places_handler.calls[0]
        assert request.url.path == "/maps/api/place/details/json"
        assert request.url.params["place_id"] == "place 1"
        assert request.url.params["fields"] == "photos"
        assert request.url.params["key"] == KEY

    @pytest.mark.asyncio
    async def test_empty_key(self, places, places_handler):
        with pytest.raises(ConfigurationError):
            await places.get_photo_url(PhotoRequest(place_id="p"), "")
        assert places_handler.calls == []

    @pytest.mark.asyncio
    async def test_no_photos(self, places, places_handler):
        places_handler.body = {"status": "OK", "result": {}}

        with pytest.raises(NotFoundError) as exc_info:
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert exc_info.value.message == "No photo available"
        assert exc_info.value.details == "Status: OK"

    @pytest.mark.asyncio
    async def test_non_ok_status_uses_error_message(self, places, places_handler):
        places_handler.body = {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}

        with pytest.raises(NotFoundError) as exc_info:
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert exc_info.value.details == "The provided API key is invalid."

    @pytest.mark.asyncio
    async def test_not_found_does_not_trip_breaker(self, places, places_handler):
        places_handler.body = {"status": "ZERO_RESULTS"}
        for _ in range(places.circuit_breaker.failure_threshold + 1):
            with pytest.raises(NotFoundError):
                await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert places.circuit_breaker.state == "closed"

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, places, places_handler, no_retry_wait):
        places_handler.error = httpx.ConnectError("connection refused")

        with pytest.raises(PhotoFetchError) as exc_info:
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)

        assert len(places_handler.calls) == 3
        assert exc_info.value.message == "Failed to fetch photo"
        assert "connection refused" in exc_info.value.details
        assert places.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_http_error_status_is_not_retried(self, places, places_handler):
        places_handler.status_code = 502

        with pytest.raises(PhotoFetchError):
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert len(places_handler.calls) == 1

    @pytest.mark.asyncio
    async def test_error_details_never_contain_key(self, places, places_handler, no_retry_wait):
        places_handler.error = httpx.ReadTimeout(f"timed out calling ...&key={KEY}")

        with pytest.raises(PhotoFetchError) as exc_info:
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert KEY not in exc_info.value.details

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"status": "OK", "result": {"photos": ["abc"]}},
            {"status": "OK", "result": "abc"},
            {"status": "OK", "result": {"photos": {"photo_reference": "abc"}}},
            {"status": "OK", "result": {"photos": [{"photo_reference": 7}]}},
        ],
    )
    async def test_malformed_body_is_a_fetch_failure(self, places, places_handler, body):
        places_handler.body = body

        with pytest.raises(PhotoFetchError) as exc_info:
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)

        assert exc_info.value.message == "Failed to fetch photo"
        assert places.circuit_breaker.failure_count == 1
        assert len(places_handler.calls) == 1

    @pytest.mark.asyncio
    async def test_success_after_malformed_body_resets_breaker(self, places, places_handler):
        places_handler.body = {"status": "OK", "result": {"photos": ["abc"]}}
        with pytest.raises(PhotoFetchError):
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)

        places_handler.body = {"status": "OK", "result": {"photos": [{"photo_reference": "r"}]}}
        await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert places.circuit_breaker.failure_count == 0

    def test_first_photo_reference(self):
        assert first_photo_reference({"result": {"photos": [{"photo_reference": "r1"}, {}]}}) == "r1"
        assert first_photo_reference({"result": {"photos": []}}) is None
        assert first_photo_reference({"result": {"photos": [{}]}}) is None
        assert first_photo_reference({}) is None

    def test_retry_backoff_uses_multiplier(self):
        wait = PlacesService._fetch_place_details.retry.wait
        assert wait.multiplier == 0  # RETRY_MIN_WAIT pinned in conftest

    @pytest.mark.asyncio
    async def test_open_circuit_short_circuits(self, places, places_handler):
        for _ in range(places.circuit_breaker.failure_threshold):
            places.circuit_breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            await places.get_photo_url(PhotoRequest(place_id="p"), KEY)
        assert places_handler.calls == []

    def test_health_status(self, places):
        assert places.health_status("") == "not_configured"
        assert places.health_status(KEY) == "configured"
        for _ in range(places.circuit_breaker.failure_threshold):
            places.circuit_breaker.record_failure()
        assert places.health_status(KEY) == "circuit_open"


class TestPhotoRoute:

    @pytest.mark.asyncio
    async def test_redirects_to_photo(self, test_client):
        response = await test_client.get("/api/places/photo?place_id=abc&maxwidth=600")

        assert response.status_code == 302
        assert response.headers["location"] == (
            "https://maps.googleapis.com/maps/api/place/photo"
            f"?maxwidth=600&photo_reference=photo-ref-123&key={KEY}"
        )

    @pytest.mark.asyncio
    async def test_default_max_width(self, test_client):
        response = await test_client.get("/api/places/photo?place_id=abc")
        assert "maxwidth=800&" in response.headers["location"]

    @pytest.mark.asyncio
    async def test_missing_place_id(self, test_client):
        response = await test_client.get("/api/places/photo?maxwidth=600")
        assert response.status_code == 400
        assert response.json() == {"error": "place_id is required"}

    @pytest.mark.asyncio
    async def test_invalid_max_width(self, test_client):
        response = await test_client.get("/api/places/photo?place_id=abc&maxwidth=big")
        assert response.status_code == 400
        assert response.json() == {"error": "maxwidth must be a positive integer"}

    @pytest.mark.asyncio
    async def test_missing_key(self, test_client, override):
        override(get_places_api_key, lambda: "")
        response = await test_client.get("/api/places/photo?place_id=abc")
        assert response.status_code == 500
        assert response.json() == {"error": "Google Places API key not configured"}

    @pytest.mark.asyncio
    async def test_no_photo(self, test_client, places_handler):
        places_handler.body = {"status": "NOT_FOUND"}
        response = await test_client.get("/api/places/photo?place_id=abc")
        assert response.status_code == 404
        assert response.json() == {"error": "No photo available", "details": "Status: NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_upstream_failure(self, test_client, places_handler, no_retry_wait):
        places_handler.error = httpx.ConnectError("unreachable")
        response = await test_client.get("/api/places/photo?place_id=abc")
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch photo"
        assert KEY not in response.text

    @pytest.mark.asyncio
    async def test_malformed_photo_entry(self, test_client, places_handler):
        places_handler.body = {"status": "OK", "result": {"photos": ["abc"]}}
        response = await test_client.get("/api/places/photo?place_id=p")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to fetch photo"
        assert "details" in body

    @pytest.mark.asyncio
    async def test_circuit_open(self, test_client, places):
        for _ in range(places.circuit_breaker.failure_threshold):
            places.circuit_breaker.record_failure()

        response = await test_client.get("/api/places/photo?place_id=abc")
        assert response.status_code == 503
        assert "Retry-After" in response.headers
        assert "recovery_time" in response.json()["details"]
