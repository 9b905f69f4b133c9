"""Session token issuing and reading.

Learn: The session is stateless — a JWT signed with the server secret.
Nothing is stored server-side; the token carries the user's id and
its own expiry (7 days by default).

Reading never raises. Every token lands in exactly one bucket:
- valid: signature ok, not expired, carries a UUID id → Identity
- expired: signature ok but past exp
- invalid: malformed, bad signature, wrong type, bad id
- absent: no token at all
Only "valid" yields an identity; everything else is anonymous.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from lunay.config import settings

SESSION_TOKEN_TYPE = "session"


@dataclass(frozen=True)
class Identity:
    """The resolved caller. Passed into every guard and service call."""

    user_id: uuid.UUID


class SessionStatus(str, enum.Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"
    ABSENT = "absent"


@dataclass(frozen=True)
class SessionReadResult:
    status: SessionStatus
    identity: Optional[Identity] = None

    @property
    def is_valid(self) -> bool:
        return self.status is SessionStatus.VALID


def issue_session_token(
    user_id: uuid.UUID | str,
    max_age_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed session token for a user."""
    issued_at = now or datetime.now(timezone.utc)
    expires = issued_at + timedelta(
        seconds=max_age_seconds or settings.session_max_age_seconds
    )
    payload = {
        "id": str(user_id),
        "sub": str(user_id),
        "type": SESSION_TOKEN_TYPE,
        "iat": issued_at,
        "exp": expires,
    }
    return jwt.encode(
        payload, settings.session_secret, algorithm=settings.session_algorithm
    )


def read_session_token(token: Optional[str]) -> SessionReadResult:
    """Verify a session token and classify it."""
    if not token:
        return SessionReadResult(SessionStatus.ABSENT)

    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.session_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        return SessionReadResult(SessionStatus.EXPIRED)
    except jwt.InvalidTokenError:
        return SessionReadResult(SessionStatus.INVALID)

    if payload.get("type") != SESSION_TOKEN_TYPE:
        return SessionReadResult(SessionStatus.INVALID)

    try:
        user_id = uuid.UUID(str(payload.get("id")))
    except ValueError:
        return SessionReadResult(SessionStatus.INVALID)

    return SessionReadResult(SessionStatus.VALID, Identity(user_id=user_id))


def token_from_request(
    authorization: Optional[str], cookie_token: Optional[str]
) -> Optional[str]:
    """Pick the session token out of the request.

    An explicit Authorization header wins over the cookie.
    """
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return cookie_token or None
