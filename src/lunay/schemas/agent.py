"""Pydantic schemas for agents and their messages.

Learn: persona and config are caller-defined JSON objects. The API
accepts any dict and stores it as-is; only `name` is required.
A message's tool_calls is any JSON value, stored as-is too.
"""

import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

MessageRole = Literal["user", "assistant", "system"]


# ─── Agents ─────────────────────────────────────────────

class AgentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    persona: dict[str, Any] = Field(default_factory=dict)
    config: dict[str, Any] = Field(default_factory=dict)
    workspace_id: Optional[uuid.UUID] = None


class AgentUpdate(BaseModel):
    """Every field optional; supplied fields replace the stored value wholesale."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    persona: Optional[dict[str, Any]] = None
    config: Optional[dict[str, Any]] = None
    workspace_id: Optional[uuid.UUID] = None


class AgentRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    workspace_id: Optional[uuid.UUID] = None
    name: str
    persona: dict[str, Any]
    config: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


# ─── Messages ───────────────────────────────────────────

class MessageCreate(BaseModel):
    agent_id: uuid.UUID
    content: str = Field(..., min_length=1)
    role: MessageRole = "user"
    tool_calls: Optional[Any] = None


class MessageRead(BaseModel):
    id: uuid.UUID
    agent_id: uuid.UUID
    role: MessageRole
    content: str
    tool_calls: Optional[Any] = None
    created_at: datetime

    model_config = {"from_attributes": True}
