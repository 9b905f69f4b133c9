"""Error taxonomy shared by services and routes.

Learn: Services raise these instead of HTTPException so they stay
usable outside FastAPI (CLI, tests). main.py registers one handler
for LunayError that turns any of them into {"detail": ...} JSON with
the right status code.

NotFoundOrForbidden covers both "no such record" and
"record exists but you can't touch it" — callers can't test for
other tenants' resources.
"""

from typing import Optional


class LunayError(Exception):
    """Base class. Subclasses set status_code and a default detail."""

    status_code = 500
    default_detail = "Internal Server Error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(LunayError):
    """No session, or the session token is invalid/expired."""

    status_code = 401
    default_detail = "Unauthorized"


class ValidationFailure(LunayError):
    """Missing or malformed required input."""

    status_code = 400
    default_detail = "Invalid request"


class NotFoundOrForbidden(LunayError):
    status_code = 404
    default_detail = "Not found"


class UpstreamFailure(LunayError):
    """An external service answered with a non-2xx status.

    The upstream status and message are passed through to the caller.
    """

    status_code = 502
    default_detail = "Upstream service error"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail)
        if status_code is not None:
            self.status_code = status_code


class InternalFailure(LunayError):
    """Unexpected fault. Detail is logged server-side, never returned."""

    status_code = 500
    default_detail = "Internal Server Error"
