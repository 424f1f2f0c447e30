"""
Generic CRUD service.

Skills, projects, experiences and contact messages share one shape: look up
by id (or another unique column), list in a fixed order, create from a
validated payload, apply a partial update, delete. `ResourceService` holds
that shape once; endpoints pick the ordering and the unique lookup column.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from core.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class ResourceService(Generic[ModelT]):
    """Create, read, update and delete rows of one table"""

    def __init__(self, session: AsyncSession, model: Type[ModelT], resource: str):
        self.session = session
        self.model = model
        self.resource = resource

    async def find(self, column: str, value: Any) -> Optional[ModelT]:
        result = await self.session.execute(
            select(self.model).where(getattr(self.model, column) == value)
        )
        return result.scalars().first()

    async def get(self, resource_id: str, column: str = "id") -> ModelT:
        instance = await self.find(column, resource_id)
        if instance is None:
            raise NotFoundError(self.resource, resource_id)
        return instance

    async def list(self, *order_by, where=None) -> List[ModelT]:
        statement = select(self.model)
        if where is not None:
            statement = statement.where(where)
        if order_by:
            statement = statement.order_by(*order_by)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(self, where=None) -> int:
        statement = select(func.count()).select_from(self.model)
        if where is not None:
            statement = statement.where(where)
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def create(self, data: Dict[str, Any]) -> ModelT:
        instance = self.model(**data)
        self.session.add(instance)
        await self._commit()
        logger.info(f"Created {self.resource} {instance.id}")
        return instance

    async def update(self, resource_id: str, data: Dict[str, Any]) -> ModelT:
        instance = await self.get(resource_id)
        for key, value in data.items():
            setattr(instance, key, value)
        self.session.add(instance)
        await self._commit()
        await self.session.refresh(instance)
        logger.info(f"Updated {self.resource} {instance.id}")
        return instance

    async def delete(self, resource_id: str) -> None:
        instance = await self.get(resource_id)
        await self.session.delete(instance)
        await self.session.commit()
        logger.info(f"Deleted {self.resource} {resource_id}")

    async def _commit(self):
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info(f"{self.resource} write rejected by store: {e.orig}")
            raise ConflictError(
                f"{self.resource} conflicts with an existing record",
                resource=self.resource,
            )
