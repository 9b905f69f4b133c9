"""Message service — chat history under an agent.

Learn: Messages have no owner column. Every operation first passes
the guard for the parent agent; only then is the messages table
touched. Messages are append-only: there is no update or delete,
apart from the cascade when their agent is deleted.
"""

import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.session import Identity
from lunay.config import settings
from lunay.db.models import Message
from lunay.db.repository import Repository
from lunay.services.guard import Action, OwnershipGuard, ResourceKind


class MessageService:
    """Business logic for agent messages."""

    def __init__(self, db: AsyncSession, guard: OwnershipGuard | None = None):
        self.db = db
        self.guard = guard or OwnershipGuard(db)
        self.messages = Repository(db, Message)

    async def list_messages(
        self, identity: Identity, agent_id: uuid.UUID, limit: Optional[int] = None
    ) -> list[Message]:
        """Most recent messages first, capped at the configured page size."""
        await self.guard.require(
            identity,
            ResourceKind.MESSAGE,
            filters={"agent_id": agent_id},
            action=Action.LIST,
        )
        page_size = min(limit or settings.message_page_size, settings.message_page_size)
        return await self.messages.find(
            agent_id=agent_id,
            order_by=[Message.created_at.desc()],
            limit=page_size,
        )

    async def create_message(
        self,
        identity: Identity,
        agent_id: uuid.UUID,
        content: str,
        role: str = "user",
        tool_calls: Optional[Any] = None,
    ) -> Message:
        await self.guard.require(
            identity,
            ResourceKind.MESSAGE,
            filters={"agent_id": agent_id},
            action=Action.CREATE,
        )
        message = await self.messages.create(
            agent_id=agent_id, role=role, content=content, tool_calls=tool_calls
        )
        await self.db.commit()
        return message

    async def get_message(self, identity: Identity, message_id: uuid.UUID) -> Message:
        return await self.guard.require(identity, ResourceKind.MESSAGE, message_id)
