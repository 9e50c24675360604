"""
ScoreSnap Web — Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by modules that need configuration values; route handlers
       receive it through the `get_settings` / `get_places_api_key`
       dependencies instead of reading the global.
When:  Loaded once at module import time.

Design Decision:
    The Google Places key is handed to route handlers as an injected value
    (FastAPI dependency) rather than read from the environment inside the
    handler. Tests swap it with `app.dependency_overrides` and never have
    to mutate os.environ.
"""

from typing import List

from fastapi import Depends, Request
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Only GOOGLE_PLACES_API_KEY is needed for the map/photo proxies to work;
    everything else has a sensible default. A missing key is reported per
    request (HTTP 500) and never stops the server.
    """

    # ── Google Maps / Places ──────────────────────────────────────────────
    # What: Server-held credential for the Static Maps and Places APIs
    # Never returned to clients, never logged
    google_places_api_key: str = Field(
        default="",
        description="Google Places / Maps API key used by the proxy routes",
    )

    # What: Root of the Google Maps web service APIs
    # Overridable so staging can point at a stub server
    maps_api_base_url: str = Field(default="https://maps.googleapis.com/maps/api")

    # What: Static map rendering options
    static_map_zoom: int = Field(default=15, ge=0, le=21)
    static_map_marker_color: str = Field(default="red")

    # ── Outbound HTTP ─────────────────────────────────────────────────────
    # What: Per-request timeout (seconds) for Place Details lookups
    http_timeout: float = Field(default=10.0, gt=0, le=120)

    # What: Tenacity retry settings for Place Details calls
    # Exponential backoff with jitter between attempts
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=1, ge=0, le=30)
    retry_max_wait: int = Field(default=8, ge=1, le=120)

    # ── Circuit Breaker ───────────────────────────────────────────────────
    # After N consecutive upstream failures, reject photo lookups for M seconds
    cb_failure_threshold: int = Field(default=5, ge=1, le=20)
    cb_recovery_timeout: int = Field(default=60, ge=0, le=300)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-IP sliding window; every proxied request spends Google quota
    rate_limit_requests: int = Field(default=600, ge=1, le=100000)
    rate_limit_window: int = Field(default=3600, ge=1, le=86400)  # seconds

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("maps_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def places_api_configured(self) -> bool:
        return bool(self.google_places_api_key)

    def validate_required_for_production(self) -> None:
        """
        Checks that the settings the proxies depend on are present.

        Called from the app lifespan. The caller logs the failure and keeps
        serving: pages and /health still work without a key.
        """
        errors = []
        if not self.places_api_configured:
            errors.append(
                "GOOGLE_PLACES_API_KEY is not set. "
                "Map and photo proxies will answer 500 until it is configured."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, loaded once at import
settings = Settings()


def get_settings(request: Request) -> Settings:
    """
    FastAPI dependency returning the settings of the app serving the request.

    create_app() stores its settings on app.state; the process-wide
    singleton is the fallback.
    """
    return getattr(request.app.state, "settings", settings)


def get_places_api_key(app_settings: Settings = Depends(get_settings)) -> str:
    """
    FastAPI dependency yielding the Google Places credential.

    Returns an empty string when unset; handlers turn that into a
    ConfigurationError so the failure is reported, not raised at startup.
    """
    return app_settings.google_places_api_key
