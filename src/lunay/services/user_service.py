"""User service — registration, login, profiles and user search.

Learn: bcrypt is CPU-bound and deliberately slow, so every hash and
verify runs in a worker thread (asyncio.to_thread). One login can't
stall every other request on the event loop.

Login failures are uniform: unknown email and wrong password raise
the same Unauthenticated("Invalid credentials"), after the same
amount of bcrypt work.
"""

import asyncio
import uuid
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.password import burn_verification, hash_password, verify_password
from lunay.auth.session import Identity
from lunay.config import settings
from lunay.db.models import User
from lunay.db.repository import Repository
from lunay.errors import NotFoundOrForbidden, Unauthenticated, ValidationFailure

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = Repository(db, User)

    # ─── Accounts ───────────────────────────────────────

    async def register(self, email: str, name: str, password: str) -> User:
        email = normalize_email(email)
        if await self.users.find_one(email=email):
            raise ValidationFailure("Email already registered")

        password_hash = await asyncio.to_thread(hash_password, password)
        try:
            user = await self.users.create(
                email=email, name=name.strip(), password_hash=password_hash
            )
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise ValidationFailure("Email already registered")

        logger.info("users.registered", user_id=str(user.id))
        return user

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.users.find_one(email=normalize_email(email))
        if user is None:
            await asyncio.to_thread(burn_verification, password)
            logger.info("auth.login_failed", reason="unknown_email")
            raise Unauthenticated(INVALID_CREDENTIALS)

        ok = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not ok:
            logger.info("auth.login_failed", reason="bad_password", user_id=str(user.id))
            raise Unauthenticated(INVALID_CREDENTIALS)

        logger.info("auth.login", user_id=str(user.id))
        return user

    async def change_password(
        self, identity: Identity, current_password: str, new_password: str
    ) -> None:
        user = await self.get_user(identity.user_id)
        ok = await asyncio.to_thread(
            verify_password, current_password, user.password_hash
        )
        if not ok:
            logger.info("users.password_change_rejected", user_id=str(user.id))
            raise Unauthenticated(INVALID_CREDENTIALS)
        user.password_hash = await asyncio.to_thread(hash_password, new_password)
        await self.db.commit()
        logger.info("users.password_changed", user_id=str(user.id))

    # ─── Profiles ───────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFoundOrForbidden("User not found")
        return user

    async def update_profile(
        self, identity: Identity, user_id: uuid.UUID, patch: dict[str, Any]
    ) -> User:
        """Only the account holder may edit their own profile."""
        if user_id != identity.user_id:
            raise NotFoundOrForbidden("User not found")
        changes = {k: v for k, v in patch.items() if k in ("name", "avatar_url")}
        if "name" in changes and not changes["name"]:
            raise ValidationFailure("name is required")
        user = await self.users.find_one_and_update({"id": user_id}, changes)
        if user is None:
            raise NotFoundOrForbidden("User not found")
        await self.db.commit()
        return user

    async def search_users(self, email_query: str) -> list[User]:
        """Case-insensitive substring match on email, sorted by name."""
        needle = normalize_email(email_query)
        if not needle:
            return []
        result = await self.db.execute(
            select(User)
            .where(func.lower(User.email).contains(needle, autoescape=True))
            .order_by(User.name)
            .limit(settings.user_search_limit)
        )
        return list(result.scalars().all())
