# Schemas package init
"""
ScoreSnap Web — Request/Response Schemas
=========================================

    - places.py: StaticMapRequest, PhotoRequest (query-string parsing),
                 ErrorResponse, HealthResponse
"""
