"""Workspace service — single-owner containers for agents.

Learn: Every read and write goes through the ownership guard first.
A workspace that belongs to someone else looks exactly like one that
doesn't exist.
"""

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.session import Identity
from lunay.db.models import Agent, Workspace
from lunay.db.repository import Repository
from lunay.services.guard import Action, OwnershipGuard, ResourceKind

logger = structlog.get_logger()


class WorkspaceService:
    """Business logic for workspaces."""

    def __init__(self, db: AsyncSession, guard: OwnershipGuard | None = None):
        self.db = db
        self.guard = guard or OwnershipGuard(db)
        self.workspaces = Repository(db, Workspace)
        self.agents = Repository(db, Agent)

    async def list_workspaces(self, identity: Identity) -> list[Workspace]:
        return await self.workspaces.find(
            user_id=identity.user_id, order_by=[Workspace.created_at.desc()]
        )

    async def create_workspace(self, identity: Identity, name: str) -> Workspace:
        workspace = await self.workspaces.create(user_id=identity.user_id, name=name)
        await self.db.commit()
        logger.info(
            "workspaces.created",
            workspace_id=str(workspace.id),
            user_id=str(identity.user_id),
        )
        return workspace

    async def get_workspace(
        self, identity: Identity, workspace_id: uuid.UUID
    ) -> Workspace:
        return await self.guard.require(
            identity, ResourceKind.WORKSPACE, workspace_id
        )

    async def update_workspace(
        self, identity: Identity, workspace_id: uuid.UUID, name: str
    ) -> Workspace:
        workspace = await self.guard.require(
            identity, ResourceKind.WORKSPACE, workspace_id, action=Action.UPDATE
        )
        workspace.name = name
        await self.db.commit()
        return workspace

    async def delete_workspace(
        self, identity: Identity, workspace_id: uuid.UUID
    ) -> None:
        """Delete a workspace. Its agents survive, detached from it."""
        workspace = await self.guard.require(
            identity, ResourceKind.WORKSPACE, workspace_id, action=Action.DELETE
        )
        detached = await self.agents.update_many(
            {"workspace_id": workspace.id}, {"workspace_id": None}
        )
        await self.workspaces.find_one_and_delete(
            id=workspace.id, user_id=identity.user_id
        )
        await self.db.commit()
        logger.info(
            "workspaces.deleted",
            workspace_id=str(workspace_id),
            detached_agents=detached,
        )
