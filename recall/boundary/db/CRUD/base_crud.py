"""
Base CRUD operations for SQLAlchemy models.

Provides the generic create and count operations shared by the
model-specific CRUD classes, which add their own scoped queries. Rows
in this schema are immutable, so there is no update.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recall.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        """
        Initialize CRUD with target model.

        Args:
            model: SQLAlchemy model class for database operations
        """
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Add a new record and flush so generated values are populated.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        return instance

    async def count(self, session: AsyncSession) -> int:
        """
        Count all records.

        Args:
            session: Async database session

        Returns:
            Number of rows in the table
        """
        result = await session.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())
