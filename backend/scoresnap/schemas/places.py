"""
ScoreSnap Web — Pydantic Request/Response Schemas
==================================================

What:  Models for the Places proxy query parameters and JSON responses.
Why:   Query strings arrive as raw text; these models turn them into typed,
       validated request objects and document the response shapes in OpenAPI.
How:   Routes accept plain `str | None` query params and call `from_query()`.
       Validation failures raise our own ValidationError (HTTP 400 with
       `{"error": ...}`) instead of FastAPI's default 422 body, so every
       error from these routes has the same flat shape.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from scoresnap.exceptions import ValidationError
from scoresnap.services.places_urls import (
    DEFAULT_MAP_HEIGHT,
    DEFAULT_MAP_WIDTH,
    DEFAULT_PHOTO_MAX_WIDTH,
)


def parse_positive_int(raw: Optional[str], default: int, message: str, field: str) -> int:
    """
    Parses an optional query-string integer.

    Missing or empty → `default`. Anything that is not plain ASCII digits
    with a value above zero → ValidationError(message). Signs, underscores
    and non-ASCII digits, which int() would accept, are rejected.
    """
    if raw is None or raw == "":
        return default
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise ValidationError(message=message, field=field, context={"value": raw})
    value = int(text)
    if value <= 0:
        raise ValidationError(message=message, field=field, context={"value": raw})
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models — validated query parameters
# ══════════════════════════════════════════════════════════════════════════


class StaticMapRequest(BaseModel):
    """
    What:  One static map request: where to center and how big the image is.
    Lifecycle: Built per inbound request, discarded after the redirect.
    """
    address: str = Field(min_length=1, description="Free-form address to center the map on")
    width: int = Field(default=DEFAULT_MAP_WIDTH, gt=0, description="Image width in pixels")
    height: int = Field(default=DEFAULT_MAP_HEIGHT, gt=0, description="Image height in pixels")

    @property
    def size(self) -> str:
        return f"{self.width}x{self.height}"

    @classmethod
    def from_query(
        cls,
        address: Optional[str],
        width: Optional[str] = None,
        height: Optional[str] = None,
    ) -> "StaticMapRequest":
        # Address is checked first: a missing address is always reported as such
        if not address:
            raise ValidationError(message="address is required", field="address")
        size_error = "width and height must be positive integers"
        return cls(
            address=address,
            width=parse_positive_int(width, DEFAULT_MAP_WIDTH, size_error, "width"),
            height=parse_positive_int(height, DEFAULT_MAP_HEIGHT, size_error, "height"),
        )


class PhotoRequest(BaseModel):
    """What:  One place photo request."""
    place_id: str = Field(min_length=1, description="Google Place ID")
    max_width: int = Field(default=DEFAULT_PHOTO_MAX_WIDTH, gt=0, description="Max photo width")

    @classmethod
    def from_query(cls, place_id: Optional[str], maxwidth: Optional[str] = None) -> "PhotoRequest":
        if not place_id:
            raise ValidationError(message="place_id is required", field="place_id")
        return cls(
            place_id=place_id,
            max_width=parse_positive_int(
                maxwidth,
                DEFAULT_PHOTO_MAX_WIDTH,
                "maxwidth must be a positive integer",
                "maxwidth",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error body returned by every API route.

    Examples:
        {"error": "address is required"}
        {"error": "Failed to generate static map", "details": "..."}
    """
    error: str = Field(description="Human-readable error summary")
    details: Optional[Any] = Field(default=None, description="Optional diagnostic detail")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and process managers.
    """
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    places_api: str = Field(
        description="Places API status: configured, not_configured, circuit_open"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
