"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request.

Two carriers for the same session token:
1. `token` cookie (set by /auth/login, used by the browser app)
2. `Authorization: Bearer <token>` header (API callers)
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from lunay.auth.session import (
    Identity,
    SessionStatus,
    read_session_token,
    token_from_request,
)
from lunay.config import settings
from lunay.errors import Unauthenticated

logger = structlog.get_logger()


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[Identity]:
    """Extract current identity (optional — returns None if no valid session).

    Learn: This is the "soft" auth dependency. A bad or expired token
    is treated exactly like no token: the caller is anonymous.
    """
    token = token_from_request(
        authorization, request.cookies.get(settings.session_cookie_name)
    )
    result = read_session_token(token)
    if result.status in (SessionStatus.EXPIRED, SessionStatus.INVALID):
        logger.info("auth.session_rejected", status=result.status.value)
    return result.identity


async def get_current_user(
    identity: Optional[Identity] = Depends(get_current_user_optional),
) -> Identity:
    """Extract current identity (required — 401 if no valid session)."""
    if identity is None:
        raise Unauthenticated()
    return identity
