"""
ScoreSnap Web — Application Package Initializer
================================================

What: Marks the `scoresnap` directory as a Python package.
Why:  Enables module imports like `from scoresnap.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The web tier follows the same layered split as the rest of ScoreSnap:

    ┌─────────────────────────────────────┐
    │     Routes (API + HTML pages)       │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (URL building, Places)   │  ← External service boundary
    ├─────────────────────────────────────┤
    │     Views (layout shell, Jinja2)    │  ← Server-rendered markup
    ├─────────────────────────────────────┤
    │    Config & Exceptions (ambient)    │  ← Settings, error taxonomy
    └─────────────────────────────────────┘

    Routes never talk to Google directly: they ask a service for a URL and
    redirect the browser there, so the API key stays on the server.
"""

__version__ = "1.0.0"
