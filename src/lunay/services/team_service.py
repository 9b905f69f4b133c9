"""Team service — teams, membership, and the visible-teams view.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database. The CLI's
repair-teams command and the HTTP routes share the same logic here.

Two invariants this module keeps:
- A team and its creator's 'admin' membership are written in one
  transaction. There is no window where a team exists without it.
- visible_teams() runs its two lookups (teams I created, teams I'm a
  member of) concurrently, each on its own session, and merges them
  without duplicates.
"""

import asyncio
import uuid
from typing import Callable, Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.auth.session import Identity
from lunay.db.models import Team, TeamMember, User
from lunay.db.repository import Repository
from lunay.errors import NotFoundOrForbidden, ValidationFailure
from lunay.schemas.team import TeamDetail, TeamMemberRead, TeamRead
from lunay.schemas.user import UserPublic
from lunay.services.guard import Action, OwnershipGuard, ResourceKind

logger = structlog.get_logger()

CREATOR_ROLE = "admin"


def merge_visible_teams(
    created: Iterable[Team], member_of: Iterable[Team]
) -> list[Team]:
    """Created teams first, then member teams, each id at most once."""
    seen: set[uuid.UUID] = set()
    merged: list[Team] = []
    for team in [*created, *member_of]:
        if team.id in seen:
            continue
        seen.add(team.id)
        merged.append(team)
    return merged


class TeamService:
    """Business logic for team management."""

    def __init__(
        self,
        db: AsyncSession,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        guard: OwnershipGuard | None = None,
    ):
        self.db = db
        self.session_factory = session_factory
        self.guard = guard or OwnershipGuard(db)
        self.teams = Repository(db, Team)
        self.members = Repository(db, TeamMember)
        self.users = Repository(db, User)

    # ─── Teams ──────────────────────────────────────────

    async def create_team(self, identity: Identity, name: str) -> Team:
        """Create a team and its creator's admin membership, atomically."""
        try:
            team = await self.teams.create(name=name, created_by=identity.user_id)
            await self.members.create(
                team_id=team.id, user_id=identity.user_id, role=CREATOR_ROLE
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error("teams.create_failed", user_id=str(identity.user_id))
            raise

        logger.info(
            "teams.created", team_id=str(team.id), user_id=str(identity.user_id)
        )
        return team

    async def visible_teams(self, identity: Identity) -> list[Team]:
        """Every team the caller created or belongs to."""
        if self.session_factory is None:
            created = await self._created_teams(self.db, identity.user_id)
            member_of = await self._member_teams(self.db, identity.user_id)
            return merge_visible_teams(created, member_of)

        created, member_of = await asyncio.gather(
            self._in_own_session(self._created_teams, identity.user_id),
            self._in_own_session(self._member_teams, identity.user_id),
        )
        return merge_visible_teams(created, member_of)

    async def get_team(self, identity: Identity, team_id: uuid.UUID) -> TeamDetail:
        team = await self.guard.require(identity, ResourceKind.TEAM, team_id)
        members = await self._member_views(team.id)
        return TeamDetail(**TeamRead.model_validate(team).model_dump(), members=members)

    async def update_team(
        self, identity: Identity, team_id: uuid.UUID, name: str
    ) -> Team:
        team = await self.guard.require(
            identity, ResourceKind.TEAM, team_id, action=Action.UPDATE
        )
        team.name = name
        await self.db.commit()
        return team

    async def delete_team(self, identity: Identity, team_id: uuid.UUID) -> None:
        team = await self.guard.require(
            identity, ResourceKind.TEAM, team_id, action=Action.DELETE
        )
        removed = await self.members.delete_many(team_id=team.id)
        await self.teams.find_one_and_delete(id=team.id)
        await self.db.commit()
        logger.info("teams.deleted", team_id=str(team_id), members=removed)

    # ─── Members ────────────────────────────────────────

    async def list_members(
        self, identity: Identity, team_id: uuid.UUID
    ) -> list[TeamMemberRead]:
        team = await self.guard.require(identity, ResourceKind.TEAM_MEMBERSHIP, team_id)
        return await self._member_views(team.id)

    async def add_member(
        self, identity: Identity, team_id: uuid.UUID, email: str, role: str = "viewer"
    ) -> TeamMemberRead:
        team = await self.guard.require(
            identity, ResourceKind.TEAM_MEMBERSHIP, team_id, action=Action.CREATE
        )
        user = await self.users.find_one(email=email.strip().lower())
        if user is None:
            raise NotFoundOrForbidden("User not found")
        if await self.members.find_one(team_id=team.id, user_id=user.id):
            raise ValidationFailure("User is already a member of this team")

        try:
            member = await self.members.create(team_id=team.id, user_id=user.id, role=role)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationFailure("User is already a member of this team")

        logger.info(
            "teams.member_added", team_id=str(team.id), user_id=str(user.id), role=role
        )
        return self._member_view(member, user)

    async def update_member_role(
        self, identity: Identity, team_id: uuid.UUID, user_id: uuid.UUID, role: str
    ) -> TeamMemberRead:
        team = await self.guard.require(
            identity, ResourceKind.TEAM_MEMBERSHIP, team_id, action=Action.UPDATE
        )
        if user_id == team.created_by:
            raise ValidationFailure("The team creator's role cannot be changed")
        member = await self.members.find_one_and_update(
            {"team_id": team.id, "user_id": user_id}, {"role": role}
        )
        if member is None:
            raise NotFoundOrForbidden("Member not found")
        await self.db.commit()
        return self._member_view(member, await self.users.get(user_id))

    async def remove_member(
        self, identity: Identity, team_id: uuid.UUID, user_id: uuid.UUID
    ) -> None:
        """Remove a member. Members may always remove themselves."""
        leaving = user_id == identity.user_id
        action = Action.READ if leaving else Action.DELETE
        team = await self.guard.require(
            identity, ResourceKind.TEAM_MEMBERSHIP, team_id, action=action
        )
        if user_id == team.created_by:
            raise ValidationFailure("The team creator cannot be removed")
        member = await self.members.find_one_and_delete(team_id=team.id, user_id=user_id)
        if member is None:
            raise NotFoundOrForbidden("Member not found")
        await self.db.commit()
        logger.info("teams.member_removed", team_id=str(team.id), user_id=str(user_id))

    # ─── Maintenance ────────────────────────────────────

    async def find_orphaned_teams(self) -> list[Team]:
        """Teams whose creator has no membership row."""
        creator_row = (
            select(TeamMember.id)
            .where(TeamMember.team_id == Team.id)
            .where(TeamMember.user_id == Team.created_by)
            .exists()
        )
        result = await self.db.execute(
            select(Team).where(~creator_row).order_by(Team.created_at)
        )
        return list(result.scalars().all())

    async def repair_orphaned_teams(self, dry_run: bool = False) -> list[Team]:
        """Give every orphaned team's creator back their admin row."""
        orphans = await self.find_orphaned_teams()
        if dry_run or not orphans:
            return orphans
        for team in orphans:
            await self.members.create(
                team_id=team.id, user_id=team.created_by, role=CREATOR_ROLE
            )
            logger.info("teams.repaired", team_id=str(team.id))
        await self.db.commit()
        return orphans

    # ─── Helpers ────────────────────────────────────────

    async def _in_own_session(self, lookup, user_id: uuid.UUID) -> list[Team]:
        async with self.session_factory() as session:
            return await lookup(session, user_id)

    @staticmethod
    async def _created_teams(db: AsyncSession, user_id: uuid.UUID) -> list[Team]:
        return await Repository(db, Team).find(
            created_by=user_id, order_by=[Team.created_at]
        )

    @staticmethod
    async def _member_teams(db: AsyncSession, user_id: uuid.UUID) -> list[Team]:
        result = await db.execute(
            select(Team)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .where(TeamMember.user_id == user_id)
            .order_by(TeamMember.created_at)
        )
        return list(result.scalars().all())

    async def _member_views(self, team_id: uuid.UUID) -> list[TeamMemberRead]:
        result = await self.db.execute(
            select(TeamMember, User)
            .join(User, User.id == TeamMember.user_id)
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.created_at)
        )
        return [self._member_view(member, user) for member, user in result.all()]

    @staticmethod
    def _member_view(member: TeamMember, user: Optional[User]) -> TeamMemberRead:
        return TeamMemberRead(
            id=member.id,
            team_id=member.team_id,
            user_id=member.user_id,
            role=member.role,
            created_at=member.created_at,
            user=UserPublic.model_validate(user) if user is not None else None,
        )
