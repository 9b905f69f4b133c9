"""Security headers middleware.

Learn: Adds standard headers to every response, redirects included:
- X-Content-Type-Options / X-Frame-Options / X-XSS-Protection
- Referrer-Policy: limits referrer info leakage
- Strict-Transport-Security: HTTPS requests only

Responses that carry a session (the auth routes return the token in
the body, login sets the `token` cookie) are also marked no-store,
so no browser or proxy cache keeps a copy of the credential.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from lunay.config import settings

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"

CREDENTIAL_PREFIXES = ("/api/v1/auth/", "/api/v1/users/change-password")


def carries_session(request: Request, response: Response) -> bool:
    if request.url.path.startswith(CREDENTIAL_PREFIXES):
        return True
    cookie_prefix = f"{settings.session_cookie_name}="
    return any(
        value.startswith(cookie_prefix)
        for value in response.headers.getlist("set-cookie")
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        if carries_session(request, response):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
        return response
