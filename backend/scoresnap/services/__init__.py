# Services package init
"""
ScoreSnap Web — Services Layer
===============================

Service Inventory:
    - places_urls:         pure same-origin URL builders for pages
    - StaticMapService:    builds the signed Google Static Maps URL
    - PlacesService:       Place Details lookup → photo URL (httpx, tenacity,
                           circuit breaker)

Services raise application exceptions; they never build HTTP responses.
"""
