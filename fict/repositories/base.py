"""
Base repository implementation.
"""
from typing import Any, Dict, Generic, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from fict.infrastructure.database.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""

    def __init__(
        self,
        model: Type[ModelType],
        db: AsyncSession,
    ):
        self.model = model
        self.db = db

    async def create(
        self,
        data: Dict[str, Any],
    ) -> ModelType:
        """
        Create a new record.

        Args:
            data: Record data

        Returns:
            Created record
        """
        db_obj = self.model(**data)
        self.db.add(db_obj)
        await self.db.commit()
        await self.db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db_obj: ModelType,
        data: Dict[str, Any],
    ) -> ModelType:
        """
        Update a loaded record in place.

        Args:
            db_obj: Record to modify
            data: Update data

        Returns:
            Updated record
        """
        for field, value in data.items():
            setattr(db_obj, field, value)

        await self.db.commit()
        await self.db.refresh(db_obj)
        return db_obj
