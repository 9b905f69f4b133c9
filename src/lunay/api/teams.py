"""Team and team-member API routes.

Learn: FastAPI routers define HTTP endpoints. Each route function
receives dependencies (db session, identity) via Depends() and
delegates to the service layer. Routes handle HTTP concerns (status
codes, request bodies), services handle business logic and raise
LunayError subclasses that main.py turns into responses.

The team service also gets the session factory: listing visible
teams fans out into two concurrent queries, each on its own session.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.dependencies import get_current_user
from lunay.auth.session import Identity
from lunay.db.engine import get_db, get_session_factory
from lunay.schemas.team import (
    TeamCreate,
    TeamDetail,
    TeamMemberAdd,
    TeamMemberRead,
    TeamMemberRoleUpdate,
    TeamRead,
    TeamUpdate,
)
from lunay.services.team_service import TeamService

router = APIRouter(prefix="/teams")


def _svc(
    db: AsyncSession = Depends(get_db),
    session_factory=Depends(get_session_factory),
) -> TeamService:
    return TeamService(db, session_factory=session_factory)


# ─── Teams ──────────────────────────────────────────────

@router.get("", response_model=list[TeamRead])
async def list_teams(
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    """Teams you created, then teams you're a member of."""
    return await svc.visible_teams(identity)


@router.post("", response_model=TeamRead, status_code=201)
async def create_team(
    body: TeamCreate,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    """Create a team. The creator becomes its first admin member."""
    return await svc.create_team(identity, name=body.name)


@router.get("/{team_id}", response_model=TeamDetail)
async def get_team(
    team_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    return await svc.get_team(identity, team_id)


@router.put("/{team_id}", response_model=TeamRead)
async def update_team(
    team_id: uuid.UUID,
    body: TeamUpdate,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    return await svc.update_team(identity, team_id, name=body.name)


@router.delete("/{team_id}")
async def delete_team(
    team_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    await svc.delete_team(identity, team_id)
    return {"deleted": True}


# ─── Members ────────────────────────────────────────────

@router.get("/{team_id}/members", response_model=list[TeamMemberRead])
async def list_members(
    team_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    return await svc.list_members(identity, team_id)


@router.post("/{team_id}/members", response_model=TeamMemberRead, status_code=201)
async def add_member(
    team_id: uuid.UUID,
    body: TeamMemberAdd,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    """Add an existing user to the team by email."""
    return await svc.add_member(identity, team_id, email=body.email, role=body.role)


@router.put("/{team_id}/members/{user_id}", response_model=TeamMemberRead)
async def update_member_role(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    body: TeamMemberRoleUpdate,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    return await svc.update_member_role(identity, team_id, user_id, role=body.role)


@router.delete("/{team_id}/members/{user_id}")
async def remove_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: TeamService = Depends(_svc),
):
    await svc.remove_member(identity, team_id, user_id)
    return {"deleted": True}
