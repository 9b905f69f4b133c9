"""Route guard middleware — page-level session gate.

Learn: Runs once per request, before routing. It only decides between
"redirect" and "pass through":
- no valid session + protected page → 307 to the login page
- valid session + login/register page → 307 to the dashboard
- everything else passes

"Valid session" means the token reads as VALID. An expired or
tampered cookie counts as no session, so the user lands on the login
page instead of being bounced between login and dashboard.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from lunay.auth.routes import RouteClass, classify, redirect_authenticated_away_from
from lunay.auth.session import read_session_token, token_from_request
from lunay.config import settings

logger = structlog.get_logger()


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirect page requests based on session presence."""

    def __init__(
        self,
        app,
        login_path: str | None = None,
        dashboard_path: str | None = None,
    ):
        super().__init__(app)
        self.login_path = login_path or settings.login_path
        self.dashboard_path = dashboard_path or settings.dashboard_path

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        token = token_from_request(
            request.headers.get("Authorization"),
            request.cookies.get(settings.session_cookie_name),
        )
        authenticated = read_session_token(token).is_valid

        if not authenticated and classify(path) is RouteClass.AUTH_REQUIRED:
            logger.info("route_guard.redirect_login", target=path)
            return RedirectResponse(self.login_path, status_code=307)

        if authenticated and redirect_authenticated_away_from(path):
            return RedirectResponse(self.dashboard_path, status_code=307)

        return await call_next(request)
