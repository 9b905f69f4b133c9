"""Ownership guard — may this identity touch this resource?

Learn: Every service asks the guard before it reads or writes anything
that belongs to someone. The rules, per resource kind:

- workspace / agent by id: owner column == caller
- agent list filtered by workspace_id: any signed-in caller
  (unless settings.strict_workspace_agent_listing is on, then the
  caller must own the workspace)
- message: transitive — the caller must pass the agent check for the
  message's agent. Nothing about the message is read before that.
- team: read = creator or member; update/delete = creator only
- team membership: read = caller has a member row;
  add/change/remove members = creator or an 'admin' member

The guard computes ALLOWED / NOT_FOUND / FORBIDDEN, but require()
collapses the last two into NotFoundOrForbidden so an outsider can't
tell "doesn't exist" from "not yours".
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.session import Identity
from lunay.config import settings
from lunay.db.models import Agent, Message, Team, TeamMember, Workspace
from lunay.db.repository import Repository
from lunay.errors import NotFoundOrForbidden

logger = structlog.get_logger()


class ResourceKind(str, enum.Enum):
    WORKSPACE = "workspace"
    AGENT = "agent"
    MESSAGE = "message"
    TEAM = "team"
    TEAM_MEMBERSHIP = "team_membership"


class Action(str, enum.Enum):
    READ = "read"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Decision(str, enum.Enum):
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


MUTATING_ACTIONS = frozenset({Action.CREATE, Action.UPDATE, Action.DELETE})

_NOT_FOUND_DETAIL = {
    ResourceKind.WORKSPACE: "Workspace not found",
    ResourceKind.AGENT: "Agent not found",
    ResourceKind.MESSAGE: "Message not found",
    ResourceKind.TEAM: "Team not found",
    ResourceKind.TEAM_MEMBERSHIP: "Team not found",
}


@dataclass(frozen=True)
class GuardResult:
    decision: Decision
    resource: Any = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOWED


ALLOWED = GuardResult(Decision.ALLOWED)
NOT_FOUND = GuardResult(Decision.NOT_FOUND)
FORBIDDEN = GuardResult(Decision.FORBIDDEN)


class OwnershipGuard:
    """Authorization decisions for one request's database session."""

    def __init__(
        self,
        db: AsyncSession,
        strict_workspace_agent_listing: Optional[bool] = None,
    ):
        self.db = db
        self.strict_workspace_agent_listing = (
            settings.strict_workspace_agent_listing
            if strict_workspace_agent_listing is None
            else strict_workspace_agent_listing
        )
        self.workspaces = Repository(db, Workspace)
        self.agents = Repository(db, Agent)
        self.messages = Repository(db, Message)
        self.teams = Repository(db, Team)
        self.members = Repository(db, TeamMember)

    # ─── Public API ─────────────────────────────────────

    async def authorize(
        self,
        identity: Identity,
        kind: ResourceKind,
        resource_id: Optional[uuid.UUID] = None,
        *,
        filters: Optional[dict[str, Any]] = None,
        action: Action = Action.READ,
    ) -> Decision:
        result = await self.check(
            identity, kind, resource_id, filters=filters, action=action
        )
        return result.decision

    async def require(
        self,
        identity: Identity,
        kind: ResourceKind,
        resource_id: Optional[uuid.UUID] = None,
        *,
        filters: Optional[dict[str, Any]] = None,
        action: Action = Action.READ,
    ) -> Any:
        """Return the authorized resource, or raise NotFoundOrForbidden."""
        result = await self.check(
            identity, kind, resource_id, filters=filters, action=action
        )
        if not result.allowed:
            logger.info(
                "guard.denied",
                kind=kind.value,
                action=action.value,
                decision=result.decision.value,
                user_id=str(identity.user_id),
            )
            raise NotFoundOrForbidden(_NOT_FOUND_DETAIL[kind])
        return result.resource

    async def check(
        self,
        identity: Identity,
        kind: ResourceKind,
        resource_id: Optional[uuid.UUID] = None,
        *,
        filters: Optional[dict[str, Any]] = None,
        action: Action = Action.READ,
    ) -> GuardResult:
        filters = filters or {}
        if kind is ResourceKind.WORKSPACE:
            return await self._check_workspace(identity, resource_id)
        if kind is ResourceKind.AGENT:
            return await self._check_agent(identity, resource_id, filters, action)
        if kind is ResourceKind.MESSAGE:
            return await self._check_message(identity, resource_id, filters)
        if kind is ResourceKind.TEAM:
            return await self._check_team(identity, resource_id, action)
        if kind is ResourceKind.TEAM_MEMBERSHIP:
            return await self._check_membership(identity, resource_id, action)
        raise ValueError(f"Unknown resource kind: {kind}")

    # ─── Single-owner resources ─────────────────────────

    async def _check_workspace(
        self, identity: Identity, workspace_id: Optional[uuid.UUID]
    ) -> GuardResult:
        if workspace_id is None:
            # Listing/creating: the service scopes by owner itself
            return ALLOWED
        workspace = await self.workspaces.get(workspace_id)
        if workspace is None:
            return NOT_FOUND
        if workspace.user_id != identity.user_id:
            return FORBIDDEN
        return GuardResult(Decision.ALLOWED, workspace)

    async def _check_agent(
        self,
        identity: Identity,
        agent_id: Optional[uuid.UUID],
        filters: dict[str, Any],
        action: Action,
    ) -> GuardResult:
        if agent_id is not None:
            agent = await self.agents.get(agent_id)
            if agent is None:
                return NOT_FOUND
            if agent.user_id != identity.user_id:
                return FORBIDDEN
            return GuardResult(Decision.ALLOWED, agent)

        workspace_id = filters.get("workspace_id")
        if (
            action is Action.LIST
            and workspace_id is not None
            and self.strict_workspace_agent_listing
        ):
            return await self._check_workspace(identity, workspace_id)
        # Unfiltered lists are scoped to the caller by the service
        return ALLOWED

    async def _check_message(
        self,
        identity: Identity,
        message_id: Optional[uuid.UUID],
        filters: dict[str, Any],
    ) -> GuardResult:
        if message_id is not None:
            message = await self.messages.get(message_id)
            if message is None:
                return NOT_FOUND
            parent = await self._check_agent(identity, message.agent_id, {}, Action.READ)
            if not parent.allowed:
                return GuardResult(parent.decision)
            return GuardResult(Decision.ALLOWED, message)

        agent_id = filters.get("agent_id")
        if agent_id is None:
            return NOT_FOUND
        # List/create under an agent: the agent check is the whole decision
        return await self._check_agent(identity, agent_id, {}, Action.READ)

    # ─── Teams ──────────────────────────────────────────

    async def _check_team(
        self, identity: Identity, team_id: Optional[uuid.UUID], action: Action
    ) -> GuardResult:
        if team_id is None:
            return ALLOWED
        team = await self.teams.get(team_id)
        if team is None:
            return NOT_FOUND
        if team.created_by == identity.user_id:
            return GuardResult(Decision.ALLOWED, team)
        if action in MUTATING_ACTIONS:
            # Membership never grants mutation of the team itself
            return FORBIDDEN
        if await self._membership(team.id, identity.user_id) is None:
            return FORBIDDEN
        return GuardResult(Decision.ALLOWED, team)

    async def _check_membership(
        self, identity: Identity, team_id: Optional[uuid.UUID], action: Action
    ) -> GuardResult:
        if team_id is None:
            return NOT_FOUND
        team = await self.teams.get(team_id)
        if team is None:
            return NOT_FOUND
        membership = await self._membership(team.id, identity.user_id)

        if action in MUTATING_ACTIONS:
            is_admin = membership is not None and membership.role == "admin"
            if team.created_by == identity.user_id or is_admin:
                return GuardResult(Decision.ALLOWED, team)
            return FORBIDDEN

        # Member view: a membership row is required, even for the creator
        if membership is None:
            return FORBIDDEN
        return GuardResult(Decision.ALLOWED, team)

    async def _membership(
        self, team_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[TeamMember]:
        return await self.members.find_one(team_id=team_id, user_id=user_id)
