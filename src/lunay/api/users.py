"""User API — search, public profiles, self-service profile edits.

Learn: Any signed-in user may look up others by email (that's how you
find someone to add to a team). Responses only ever carry the public
profile fields; the password hash never leaves the service layer.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.dependencies import get_current_user
from lunay.auth.session import Identity
from lunay.db.engine import get_db
from lunay.schemas.user import PasswordChange, ProfileUpdate, UserPublic
from lunay.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=list[UserPublic])
async def search_users(
    email: str = Query(..., min_length=1),
    svc: UserService = Depends(_svc),
):
    """Find users whose email contains the query (case-insensitive)."""
    return await svc.search_users(email)


@router.post("/change-password")
async def change_password(
    body: PasswordChange,
    identity: Identity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    await svc.change_password(identity, body.current_password, body.new_password)
    return {"success": True}


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(user_id: uuid.UUID, svc: UserService = Depends(_svc)):
    return await svc.get_user(user_id)


@router.put("/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: uuid.UUID,
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Update your own profile. Anyone else's id → 404."""
    return await svc.update_profile(
        identity, user_id, body.model_dump(exclude_unset=True)
    )
