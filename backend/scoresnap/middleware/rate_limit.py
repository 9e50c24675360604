"""
ScoreSnap Web — Rate Limiting Middleware
=========================================

What:  Per-IP sliding window rate limiter.
Why:   Every proxied map or photo request spends Google API quota that is
       billed to us; one misbehaving client should not burn through it.
How:   Keep each IP's request timestamps for the last `rate_limit_window`
       seconds; reject with 429 once `rate_limit_requests` are in the window.

In-memory and per-process. Running several workers multiplies the
effective limit by the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from scoresnap.config import Settings, settings
from scoresnap.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding window limiter applied to every path except health and docs.

    Response on rate limit:
        HTTP 429, Retry-After header, body
        {"error": "Too many requests...", "details": {"retry_after": n}}
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Drop idle IPs every this many recorded requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, app_settings: Optional[Settings] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.settings = app_settings or settings
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        limit = self.settings.rate_limit_requests
        window = self.settings.rate_limit_window

        now = time.time()
        window_start = now - window
        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= limit:
            retry_after = int(timestamps[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_payload(),
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._recorded += 1
        if self._recorded % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
