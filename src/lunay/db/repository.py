"""Generic repository — the persistence contract services talk to.

Learn: Every service goes through the same handful of operations:
find_one / find / create / find_one_and_update / find_one_and_delete,
all filtering by equality on columns. Keeping them in one class means
the ownership checks in services read the same way for every resource:

    agent = await self.agents.find_one(id=agent_id, user_id=identity.user_id)

Repositories only flush. Committing is the service's job, so one
service call can group several writes into a single transaction.
"""

from typing import Any, Generic, Optional, Sequence, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lunay.db.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Equality-filtered CRUD over one model."""

    def __init__(self, db: AsyncSession, model: type[ModelT]):
        self.db = db
        self.model = model

    def _where(self, query, filters: dict[str, Any]):
        for key, value in filters.items():
            column = getattr(self.model, key)
            query = query.where(column.is_(None) if value is None else column == value)
        return query

    async def get(self, id: Any) -> Optional[ModelT]:
        return await self.db.get(self.model, id)

    async def find_one(self, **filters) -> Optional[ModelT]:
        result = await self.db.execute(self._where(select(self.model), filters).limit(1))
        return result.scalars().first()

    async def find(
        self,
        *,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        **filters,
    ) -> list[ModelT]:
        query = self._where(select(self.model), filters)
        if order_by:
            query = query.order_by(*order_by)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, **values) -> ModelT:
        entity = self.model(**values)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def find_one_and_update(
        self, filters: dict[str, Any], patch: dict[str, Any]
    ) -> Optional[ModelT]:
        """Apply patch to the first match. Returns the updated row or None."""
        entity = await self.find_one(**filters)
        if entity is None:
            return None
        for key, value in patch.items():
            setattr(entity, key, value)
        await self.db.flush()
        return entity

    async def find_one_and_delete(self, **filters) -> Optional[ModelT]:
        """Delete the first match. Returns the deleted row or None."""
        entity = await self.find_one(**filters)
        if entity is None:
            return None
        await self.db.delete(entity)
        await self.db.flush()
        return entity

    async def update_many(self, filters: dict[str, Any], patch: dict[str, Any]) -> int:
        stmt = self._where(update(self.model), filters).values(**patch)
        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount

    async def delete_many(self, **filters) -> int:
        stmt = self._where(delete(self.model), filters)
        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount
