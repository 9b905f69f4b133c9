"""Message API routes.

Learn: Messages are only reachable through an agent you own.
GET /messages needs ?agent_id=...; the 50 most recent come back,
newest first.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.dependencies import get_current_user
from lunay.auth.session import Identity
from lunay.db.engine import get_db
from lunay.schemas.agent import MessageCreate, MessageRead
from lunay.services.message_service import MessageService

router = APIRouter(prefix="/messages")


def _svc(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("", response_model=list[MessageRead])
async def list_messages(
    agent_id: uuid.UUID = Query(...),
    identity: Identity = Depends(get_current_user),
    svc: MessageService = Depends(_svc),
):
    return await svc.list_messages(identity, agent_id)


@router.post("", response_model=MessageRead, status_code=201)
async def create_message(
    body: MessageCreate,
    identity: Identity = Depends(get_current_user),
    svc: MessageService = Depends(_svc),
):
    return await svc.create_message(
        identity,
        agent_id=body.agent_id,
        content=body.content,
        role=body.role,
        tool_calls=body.tool_calls,
    )


@router.get("/{message_id}", response_model=MessageRead)
async def get_message(
    message_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: MessageService = Depends(_svc),
):
    return await svc.get_message(identity, message_id)
