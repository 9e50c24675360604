"""
ScoreSnap Web — HTML Page Routes
=================================

What:  GET / (landing page) and the not-found page for unmatched paths.
How:   Each page resolves the auth state through the `get_auth_state`
       dependency and renders through the layout shell.

Not-found split:
    /api/... → JSON {"error": "Not Found"} (API clients parse JSON)
    anything else → HTML not-found page inside the layout, status 404
"""

import inspect
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from scoresnap.views.layout import AuthState, get_auth_state, render_layout

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def home(
    request: Request,
    auth: AuthState = Depends(get_auth_state),
) -> HTMLResponse:
    html = render_layout(
        "home.html",
        status=auth.status,
        user=auth.user,
        pathname=request.url.path,
    )
    return HTMLResponse(content=html)


def render_not_found(request: Request, auth: AuthState) -> HTMLResponse:
    """The static 404 page, framed by the layout shell."""
    logger.debug("No page for %s", request.url.path)
    html = render_layout(
        "not_found.html",
        status=auth.status,
        user=auth.user,
        pathname=request.url.path,
        title="Page not found",
    )
    return HTMLResponse(content=html, status_code=404)


async def resolve_auth_state(request: Request) -> AuthState:
    """
    Auth state outside of route dependency injection (exception handlers).

    Honors `app.dependency_overrides` so the not-found page sees the same
    auth state as every other page.

    Exception handlers run outside FastAPI's dependency resolution, so the
    provider (or its override) is called directly. Supported providers take
    no arguments or a single Request argument, sync or async. Any other
    signature (e.g. one with its own `Depends(...)` parameters) is not
    called: the page renders with the still-loading state, without a header.
    """
    provider = request.app.dependency_overrides.get(get_auth_state, get_auth_state)
    parameters = inspect.signature(provider).parameters
    if not parameters:
        state = provider()
    elif len(parameters) == 1 and _takes_request_only(parameters):
        state = provider(request)
    else:
        logger.warning(
            "Auth state provider %s takes %d parameters; rendering as loading",
            getattr(provider, "__name__", provider),
            len(parameters),
        )
        return AuthState(loading=True)
    if inspect.isawaitable(state):
        state = await state
    return state


def _takes_request_only(parameters) -> bool:
    # A lone parameter with a default is a Depends(...) or query, not the Request
    (only,) = parameters.values()
    return only.default is inspect.Parameter.empty
