"""Pydantic schemas for users and sessions."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserPublic(BaseModel):
    """Profile fields safe to show to any signed-in user."""
    id: uuid.UUID
    email: str
    name: str
    avatar_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionUser(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    """Login response — the token is also set as the `token` cookie."""
    user: SessionUser
    token: str
    expires_at: datetime


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
