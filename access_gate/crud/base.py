import logging
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.db import Base
from access_gate.services.errors import NotFoundError

logger = logging.getLogger('access_gate')

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    not_found_message: str = 'Object not found'

    def __init__(self, model: Type[ModelType]):
        """
        CRUD object with the default read methods shared by all models.

        Reads always overwrite instances already in the session so state
        changed by another transaction or by a bulk UPDATE is never stale.

        **Parameters**

        * `model`: A SQLAlchemy model class
        """
        self.model = model

    async def get(
            self,
            session: AsyncSession,
            obj_id: int,
    ) -> Optional[ModelType]:
        db_obj = await session.execute(
            select(self.model)
            .where(self.model.id == obj_id)
            .execution_options(populate_existing=True)
        )
        return db_obj.scalars().first()

    async def get_or_404(
            self,
            session: AsyncSession,
            obj_id: int,
    ) -> ModelType:
        result = await self.get(session, obj_id)
        if result is None:
            raise NotFoundError(self.not_found_message)
        return result

    async def get_by_email(
            self,
            session: AsyncSession,
            email: str,
    ) -> Optional[ModelType]:
        result = await session.execute(
            select(self.model)
            .where(self.model.email == email)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_multi(
            self,
            session: AsyncSession,
    ) -> List[ModelType]:
        db_objs = await session.execute(
            select(self.model).order_by(
                self.model.created_at.desc(), self.model.id.desc()
            )
        )
        return db_objs.scalars().all()
