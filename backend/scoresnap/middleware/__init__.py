# Middleware package init
"""
ScoreSnap Web — Middleware Package
===================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Rate Limit] → [CORS] → Route Handler

    1. Request ID first: every response, 429s included, carries X-Request-ID
    2. Logging: one access line per request, rejected ones too
    3. Rate Limit: over-quota clients are turned away before any route runs
    4. CORS: FastAPI's CORSMiddleware (preflight handling)
"""
