"""Auth API — registration, login, logout, current user.

Learn: Routes for the session lifecycle:
- POST /auth/register → create a new user account
- POST /auth/login → email/password → session token (body + `token` cookie)
- POST /auth/logout → clear the cookie
- GET /auth/me → current user's profile

Sessions are stateless JWTs, so logout can only drop the cookie. A
token copied elsewhere stays valid until it expires.
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.dependencies import get_current_user
from lunay.auth.session import Identity, issue_session_token
from lunay.config import settings
from lunay.db.engine import get_db
from lunay.schemas.user import (
    LoginRequest,
    RegisterRequest,
    SessionResponse,
    SessionUser,
    UserPublic,
)
from lunay.services.user_service import UserService

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserPublic, status_code=201)
async def register(body: RegisterRequest, svc: UserService = Depends(_svc)):
    """Create a new user account."""
    return await svc.register(email=body.email, name=body.name, password=body.password)


# ─── Login / logout ──────────────────────────────────────


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest, response: Response, svc: UserService = Depends(_svc)
):
    """Login with email and password → session token.

    Learn: The token goes out twice: in the JSON body for API callers
    and as an HttpOnly cookie for the browser app.
    """
    user = await svc.authenticate(body.email, body.password)

    now = datetime.now(timezone.utc)
    max_age = settings.session_max_age_seconds
    token = issue_session_token(user.id, max_age_seconds=max_age, now=now)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.secure_cookies,
    )
    return SessionResponse(
        user=SessionUser.model_validate(user),
        token=token,
        expires_at=now + timedelta(seconds=max_age),
    )


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.secure_cookies,
    )
    return {"success": True}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserPublic)
async def get_me(
    identity: Identity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Get the current authenticated user's profile."""
    return await svc.get_user(identity.user_id)
