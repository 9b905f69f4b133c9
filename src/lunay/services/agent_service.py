"""Agent service — user-owned AI agents.

Learn: Agents are owned by user_id. Listing by workspace_id is the one
place the guard is looser (any signed-in caller may list a workspace's
agents unless strict_workspace_agent_listing is on); reading, updating
and deleting a single agent always requires ownership.

Attaching an agent to a workspace is a write against that workspace,
so it requires owning the workspace too.
"""

import uuid
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.session import Identity
from lunay.db.models import Agent, Message
from lunay.db.repository import Repository
from lunay.errors import ValidationFailure
from lunay.services.guard import Action, OwnershipGuard, ResourceKind

logger = structlog.get_logger()

MUTABLE_FIELDS = ("name", "persona", "config", "workspace_id")


class AgentService:
    """Business logic for agents."""

    def __init__(self, db: AsyncSession, guard: OwnershipGuard | None = None):
        self.db = db
        self.guard = guard or OwnershipGuard(db)
        self.agents = Repository(db, Agent)
        self.messages = Repository(db, Message)

    async def list_agents(
        self, identity: Identity, workspace_id: Optional[uuid.UUID] = None
    ) -> list[Agent]:
        """Caller's agents, or every agent filed under workspace_id."""
        await self.guard.require(
            identity,
            ResourceKind.AGENT,
            filters={"workspace_id": workspace_id},
            action=Action.LIST,
        )
        order = [Agent.created_at.desc()]
        if workspace_id is not None:
            return await self.agents.find(workspace_id=workspace_id, order_by=order)
        return await self.agents.find(user_id=identity.user_id, order_by=order)

    async def create_agent(
        self,
        identity: Identity,
        name: str,
        persona: Optional[dict] = None,
        config: Optional[dict] = None,
        workspace_id: Optional[uuid.UUID] = None,
    ) -> Agent:
        if not name:
            raise ValidationFailure("name is required")
        if workspace_id is not None:
            await self._require_workspace(identity, workspace_id)

        agent = await self.agents.create(
            user_id=identity.user_id,
            workspace_id=workspace_id,
            name=name,
            persona=persona or {},
            config=config or {},
        )
        await self.db.commit()
        logger.info(
            "agents.created", agent_id=str(agent.id), user_id=str(identity.user_id)
        )
        return agent

    async def get_agent(self, identity: Identity, agent_id: uuid.UUID) -> Agent:
        return await self.guard.require(identity, ResourceKind.AGENT, agent_id)

    async def update_agent(
        self, identity: Identity, agent_id: uuid.UUID, patch: dict[str, Any]
    ) -> Agent:
        """Replace the supplied mutable fields; unsupplied fields are untouched."""
        agent = await self.guard.require(
            identity, ResourceKind.AGENT, agent_id, action=Action.UPDATE
        )
        changes = {k: v for k, v in patch.items() if k in MUTABLE_FIELDS}

        if "name" in changes and not changes["name"]:
            raise ValidationFailure("name is required")
        for key in ("persona", "config"):
            if key in changes and changes[key] is None:
                changes[key] = {}
        new_workspace = changes.get("workspace_id")
        if new_workspace is not None and new_workspace != agent.workspace_id:
            await self._require_workspace(identity, new_workspace)

        updated = await self.agents.find_one_and_update(
            {"id": agent.id, "user_id": identity.user_id}, changes
        )
        await self.db.commit()
        return updated

    async def delete_agent(self, identity: Identity, agent_id: uuid.UUID) -> None:
        """Delete an agent and its whole message history."""
        agent = await self.guard.require(
            identity, ResourceKind.AGENT, agent_id, action=Action.DELETE
        )
        removed = await self.messages.delete_many(agent_id=agent.id)
        await self.agents.find_one_and_delete(id=agent.id, user_id=identity.user_id)
        await self.db.commit()
        logger.info("agents.deleted", agent_id=str(agent_id), messages=removed)

    async def _require_workspace(
        self, identity: Identity, workspace_id: uuid.UUID
    ) -> None:
        await self.guard.require(
            identity, ResourceKind.WORKSPACE, workspace_id, action=Action.UPDATE
        )
