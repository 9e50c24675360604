# Routes package init
"""
ScoreSnap Web — Routes Package
===============================

Route Inventory:
    - places.py:  GET /api/places/static-map   (redirect to static map image)
                  GET /api/places/photo        (redirect to place photo)
    - pages.py:   GET /                        (landing page)
                  not-found page for unmatched paths
    - health.py:  GET /health                  (service health check)

Routes stay thin: parse the request, call a service or the layout shell,
shape the response. Errors are raised and formatted by the global handlers.
"""
