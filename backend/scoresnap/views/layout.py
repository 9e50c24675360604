"""
ScoreSnap Web — Layout Shell
=============================

What:  Wraps every HTML page in the shared frame and decides whether the
       navigation header is shown.
Why:   The header depends on who is signed in, and the auth provider may not
       have answered yet. Showing a header and then yanking it (or the other
       way round) is what we avoid.
How:   Two contexts are composed around the page body:
         - auth context:  AuthState from the `get_auth_state` dependency,
                          reduced to an explicit AuthStatus
         - query context: per-request prefetched data, serialized into the
                          page so client-side data fetching starts warm
       The status is passed explicitly into `render_layout`; nothing here
       reads request globals.

Auth Status State Machine:
    unknown        → header suppressed, body + notifications rendered
    authenticated  → header rendered, then body + notifications
    anonymous      → body + notifications, no header

    There is no transition back to `unknown`; that lifecycle belongs to the
    auth provider, which lives outside this service.
"""

import enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Request
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel, Field

SITE_TITLE = "ScoreSnap - Bowling Score Capture"
SITE_DESCRIPTION = (
    "Upload bowling scoreboard images and automatically extract scores using AI vision"
)

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


# ══════════════════════════════════════════════════════════════════════════
# Auth Context
# ══════════════════════════════════════════════════════════════════════════

class AuthStatus(str, enum.Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionUser(BaseModel):
    """
    What:  The signed-in user as the auth provider reports it, plus the two
           profile flags that change the navigation.
    """
    id: str
    email: Optional[str] = None
    claimed_bowler_id: Optional[str] = Field(
        default=None, description="Bowler record this account has claimed"
    )
    is_admin: bool = False


class AuthState(BaseModel):
    """What the auth provider exposes: the user, and whether it is still loading."""
    user: Optional[SessionUser] = None
    loading: bool = True

    @property
    def status(self) -> AuthStatus:
        if self.loading:
            return AuthStatus.UNKNOWN
        if self.user is not None:
            return AuthStatus.AUTHENTICATED
        return AuthStatus.ANONYMOUS


def get_auth_state(request: Request) -> AuthState:
    """
    FastAPI dependency returning the request's auth state.

    An upstream auth integration is expected to put an AuthState on
    `request.state.auth`. Without one the state is still loading, so pages
    render without a header. Deployments with a real provider override this
    dependency.
    """
    state = getattr(request.state, "auth", None)
    if isinstance(state, AuthState):
        return state
    return AuthState(loading=True)


# ══════════════════════════════════════════════════════════════════════════
# Navigation
# ══════════════════════════════════════════════════════════════════════════

class NavItem(BaseModel):
    name: str
    href: str
    requires_auth: bool = False
    active: bool = False


def is_active(href: str, pathname: str) -> bool:
    # The dashboard is a prefix of nothing else we want highlighted
    if href == "/dashboard":
        return pathname == href
    return pathname.startswith(href)


def build_navigation(user: Optional[SessionUser], pathname: str = "/") -> List[NavItem]:
    """
    Header navigation for `user`, with the item for `pathname` marked active.

    Public sections always; My Profile once a bowler is claimed; Upload for
    any signed-in user; Debug for admins only.
    """
    entries = [
        ("Bowlers", "/bowlers", False),
        ("Sessions", "/sessions", False),
        ("Alleys", "/alleys", False),
    ]
    if user is not None:
        if user.claimed_bowler_id:
            entries.append(("My Profile", f"/bowlers/{user.claimed_bowler_id}", True))
        entries.append(("Upload", "/upload", True))
        if user.is_admin:
            entries.append(("Debug", "/debug/upload", True))

    return [
        NavItem(name=name, href=href, requires_auth=requires_auth, active=is_active(href, pathname))
        for name, href, requires_auth in entries
    ]


# ══════════════════════════════════════════════════════════════════════════
# Rendering
# ══════════════════════════════════════════════════════════════════════════

def render_layout(
    template_name: str,
    status: AuthStatus,
    user: Optional[SessionUser] = None,
    pathname: str = "/",
    query_state: Optional[Dict[str, Any]] = None,
    title: Optional[str] = None,
    **page_context: Any,
) -> str:
    """
    Render `template_name` (which extends base.html) inside the layout shell.

    Args:
        status:      explicit auth status; only AUTHENTICATED with a user
                     shows the header
        user:        the signed-in user, if any
        pathname:    current path, used to highlight the active nav item
        query_state: prefetched data for client-side fetching, keyed by query key
        title:       page title prefix; the site title is appended
        page_context: extra variables for the page template
    """
    show_header = status == AuthStatus.AUTHENTICATED and user is not None
    template = _env.get_template(template_name)
    return template.render(
        title=f"{title} | {SITE_TITLE}" if title else SITE_TITLE,
        description=SITE_DESCRIPTION,
        auth_status=status.value,
        show_header=show_header,
        user=user if show_header else None,
        navigation=build_navigation(user, pathname) if show_header else [],
        query_state=query_state or {},
        **page_context,
    )
