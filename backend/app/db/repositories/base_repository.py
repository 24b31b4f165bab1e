"""
Base repository with the CRUD operations shared by every billing entity.
Repositories flush but never commit; services own the transaction.
"""

from typing import Generic, TypeVar, Type, Optional, List, Any
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from app.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic repository over one model class, keyed by UUID primary key."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _apply_filters(self, query, filters: dict[str, Any]):
        """Equality filters on model columns; None values and unknown keys are ignored."""
        for key, value in filters.items():
            if value is not None and hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)
        return query

    async def create(self, **kwargs) -> ModelType:
        """Insert a row and return it with server defaults loaded."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get(self, id: UUID) -> Optional[ModelType]:
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def list(self, skip: int = 0, limit: int = 100, **filters) -> List[ModelType]:
        """
        List rows matching the filters.

        Args:
            skip: Number of rows to skip
            limit: Maximum number of rows to return
            **filters: Column equality filters (None means "any")
        """
        query = self._apply_filters(select(self.model), filters).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters) -> int:
        query = self._apply_filters(select(func.count(self.model.id)), filters)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def update(self, id: UUID, **kwargs) -> Optional[ModelType]:
        """Apply column values to one row and return the reloaded instance."""
        await self.session.execute(
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
        )
        await self.session.flush()
        return await self.get(id)
