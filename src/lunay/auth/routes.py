"""Route classification — which paths need a session.

Learn: This is the page-level gate, run once per request by
RouteGuardMiddleware. API paths are always "public" here: each API
route enforces auth itself through the get_current_user dependency,
and API callers want a 401, not a redirect to a login page.
"""

import enum

# Exact-match public paths
PUBLIC_PATHS = frozenset({"/", "/subscription", "/try-luna", "/favicon.ico"})

# Prefix-match public paths: auth pages, static assets, framework internals, APIs
PUBLIC_PREFIXES = (
    "/auth/",
    "/_next",
    "/images/",
    "/static/",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/",
)

# Pages a signed-in user should be bounced away from
AUTH_ONLY_PREFIXES = ("/auth/login", "/auth/register")


class RouteClass(str, enum.Enum):
    PUBLIC = "public"
    AUTH_REQUIRED = "auth_required"


def classify(path: str) -> RouteClass:
    """Decide whether a path can be served without a session."""
    if path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
        return RouteClass.PUBLIC
    return RouteClass.AUTH_REQUIRED


def redirect_authenticated_away_from(path: str) -> bool:
    """True for login/registration pages."""
    return path.startswith(AUTH_ONLY_PREFIXES)
