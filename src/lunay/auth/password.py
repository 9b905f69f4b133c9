"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor comes from settings.bcrypt_rounds (10 by default).

verify_password never raises — a malformed stored hash is just a
failed login, not a 500.
"""

import bcrypt

from lunay.config import settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError, AttributeError):
        return False


# Compared against when the email doesn't exist, so an unknown email
# costs one bcrypt comparison, the same as a wrong password. Built at
# import so no request ever pays for generating it.
DUMMY_HASH = hash_password("lunay-placeholder-password")


def burn_verification(password: str) -> bool:
    """Run a comparison that always fails, at normal bcrypt cost."""
    verify_password(password, DUMMY_HASH)
    return False
