"""Agent API routes.

Learn: GET /agents without a query returns the caller's own agents;
GET /agents?workspace_id=... returns the agents filed under that
workspace. Single-agent routes are owner-only and answer 404 to
anyone else.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.dependencies import get_current_user
from lunay.auth.session import Identity
from lunay.db.engine import get_db
from lunay.schemas.agent import AgentCreate, AgentRead, AgentUpdate
from lunay.services.agent_service import AgentService

router = APIRouter(prefix="/agents")


def _svc(db: AsyncSession = Depends(get_db)) -> AgentService:
    return AgentService(db)


@router.get("", response_model=list[AgentRead])
async def list_agents(
    workspace_id: Optional[uuid.UUID] = Query(None),
    identity: Identity = Depends(get_current_user),
    svc: AgentService = Depends(_svc),
):
    return await svc.list_agents(identity, workspace_id=workspace_id)


@router.post("", response_model=AgentRead, status_code=201)
async def create_agent(
    body: AgentCreate,
    identity: Identity = Depends(get_current_user),
    svc: AgentService = Depends(_svc),
):
    return await svc.create_agent(
        identity,
        name=body.name,
        persona=body.persona,
        config=body.config,
        workspace_id=body.workspace_id,
    )


@router.get("/{agent_id}", response_model=AgentRead)
async def get_agent(
    agent_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: AgentService = Depends(_svc),
):
    return await svc.get_agent(identity, agent_id)


@router.put("/{agent_id}", response_model=AgentRead)
async def update_agent(
    agent_id: uuid.UUID,
    body: AgentUpdate,
    identity: Identity = Depends(get_current_user),
    svc: AgentService = Depends(_svc),
):
    """Replace the fields present in the body; omitted fields are kept."""
    return await svc.update_agent(
        identity, agent_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{agent_id}")
async def delete_agent(
    agent_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: AgentService = Depends(_svc),
):
    """Delete an agent together with its messages."""
    await svc.delete_agent(identity, agent_id)
    return {"deleted": True}
