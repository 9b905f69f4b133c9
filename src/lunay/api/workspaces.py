"""Workspace API routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.dependencies import get_current_user
from lunay.auth.session import Identity
from lunay.db.engine import get_db
from lunay.schemas.workspace import WorkspaceCreate, WorkspaceRead, WorkspaceUpdate
from lunay.services.workspace_service import WorkspaceService

router = APIRouter(prefix="/workspaces")


def _svc(db: AsyncSession = Depends(get_db)) -> WorkspaceService:
    return WorkspaceService(db)


@router.get("", response_model=list[WorkspaceRead])
async def list_workspaces(
    identity: Identity = Depends(get_current_user),
    svc: WorkspaceService = Depends(_svc),
):
    """The caller's workspaces, newest first."""
    return await svc.list_workspaces(identity)


@router.post("", response_model=WorkspaceRead, status_code=201)
async def create_workspace(
    body: WorkspaceCreate,
    identity: Identity = Depends(get_current_user),
    svc: WorkspaceService = Depends(_svc),
):
    return await svc.create_workspace(identity, name=body.name)


@router.get("/{workspace_id}", response_model=WorkspaceRead)
async def get_workspace(
    workspace_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: WorkspaceService = Depends(_svc),
):
    return await svc.get_workspace(identity, workspace_id)


@router.put("/{workspace_id}", response_model=WorkspaceRead)
async def update_workspace(
    workspace_id: uuid.UUID,
    body: WorkspaceUpdate,
    identity: Identity = Depends(get_current_user),
    svc: WorkspaceService = Depends(_svc),
):
    return await svc.update_workspace(identity, workspace_id, name=body.name)


@router.delete("/{workspace_id}")
async def delete_workspace(
    workspace_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    svc: WorkspaceService = Depends(_svc),
):
    """Delete a workspace. Its agents are kept, detached."""
    await svc.delete_workspace(identity, workspace_id)
    return {"deleted": True}
