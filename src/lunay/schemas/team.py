"""Pydantic schemas for teams and team membership.

Learn: Pydantic v2 models validate request/response data. Separate
"Create" schemas (input) from "Read" schemas (output) for clean APIs.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from lunay.schemas.user import UserPublic

TEAM_ROLE_PATTERN = r"^(admin|editor|viewer)$"


# ─── Teams ──────────────────────────────────────────────

class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TeamUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TeamRead(BaseModel):
    id: uuid.UUID
    name: str
    created_by: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class TeamDetail(TeamRead):
    """Team with its members."""
    members: list["TeamMemberRead"] = []


# ─── Members ────────────────────────────────────────────

class TeamMemberAdd(BaseModel):
    email: str = Field(..., min_length=1)
    role: str = Field(default="viewer", pattern=TEAM_ROLE_PATTERN)


class TeamMemberRoleUpdate(BaseModel):
    role: str = Field(..., pattern=TEAM_ROLE_PATTERN)


class TeamMemberRead(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    created_at: datetime
    user: UserPublic | None = None

    model_config = {"from_attributes": True}


# Rebuild forward refs for nested models
TeamDetail.model_rebuild()
