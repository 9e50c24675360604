"""
ScoreSnap Web — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── test_settings:   Settings instance with a fake Places key
    ├── app:             create_app(test_settings) with no dependency overrides
    ├── places_handler:  programmable fake of the Place Details API
    ├── places:          PlacesService talking to that fake over httpx.MockTransport
    └── test_client:     HTTPX AsyncClient routed straight into the app
"""

import os

# Pin settings the retry decorator reads at import time, BEFORE any app import
os.environ["RETRY_MAX_ATTEMPTS"] = "3"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Callable, Dict, List  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from scoresnap.config import Settings  # noqa: E402
from scoresnap.main import create_app  # noqa: E402
from scoresnap.services.places_service import PlacesService, get_places_service  # noqa: E402

TEST_PLACES_KEY = "test-places-key-not-real"


class FakePlacesAPI:
    """
    Stand-in for the Place Details endpoint.

    Tests set `body` (JSON returned), `status_code`, or `error` (exception
    raised instead of answering). Every request is recorded in `calls`.
    """

    def __init__(self):
        self.body: Dict[str, Any] = {
            "status": "OK",
            "result": {"photos": [{"photo_reference": "photo-ref-123"}]},
        }
        self.status_code = 200
        self.error: Exception | None = None
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        google_places_api_key=TEST_PLACES_KEY,
        rate_limit_requests=10_000,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def places_handler() -> FakePlacesAPI:
    return FakePlacesAPI()


@pytest.fixture
def places(test_settings, places_handler) -> PlacesService:
    """A PlacesService with its own circuit breaker and a mocked upstream."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(places_handler))
    return PlacesService(test_settings, client=client)


@pytest.fixture
def override(app) -> Callable[[Callable, Callable], None]:
    """
    Shorthand for app.dependency_overrides.

    Usage:
        override(get_places_api_key, lambda: "")
    """
    def _override(dependency: Callable, replacement: Callable) -> None:
        app.dependency_overrides[dependency] = replacement
    return _override


@pytest_asyncio.fixture
async def test_client(app, places):
    """
    Async HTTP client talking to the app in-process.

    The app's PlacesService is swapped for the per-test one so circuit
    breaker state never leaks between tests. Redirects are not followed:
    tests inspect the 302 itself.
    """
    app.dependency_overrides[get_places_service] = lambda: places
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await places.close()
