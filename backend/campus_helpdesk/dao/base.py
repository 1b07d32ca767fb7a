"""
Base Data Access Object (DAO) class.

WHY: The DAO pattern keeps SQLAlchemy statements out of the store and
service layers, so the relational backend can change without touching
business logic.
"""

from typing import Generic, TypeVar, Type, Optional, List, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from campus_helpdesk.models.base import Base

# Type variable for model class
ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Base Data Access Object providing CRUD operations for all models.

    DAOs flush but never commit; the owning store decides the
    transaction boundary.

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize DAO with model class and database session.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Field values for the new record

        Returns:
            The created model instance with database-generated fields populated

        Raises:
            IntegrityError: If unique or foreign key constraints are violated
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()  # Flush to get auto-generated fields
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        """
        Retrieve a single record by primary key.

        Args:
            id: Primary key value

        Returns:
            The model instance if found, None otherwise
        """
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self, **filters: Any) -> List[ModelType]:
        """
        Retrieve every record matching equality filters, ordered by primary key.

        Args:
            **filters: Field name to value filters (e.g., role="admin")

        Returns:
            List of model instances matching the filters
        """
        query = select(self.model)

        for field, value in filters.items():
            if not hasattr(self.model, field):
                raise AttributeError(f"{self.model.__name__} has no field '{field}'")
            query = query.where(getattr(self.model, field) == value)

        query = query.order_by(self.model.id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, instance: ModelType, **values: Any) -> ModelType:
        """
        Apply field values to a loaded instance and flush.

        Args:
            instance: Persistent model instance
            **values: Fields to update

        Returns:
            The same instance, flushed
        """
        for field, value in values.items():
            setattr(instance, field, value)
        await self.session.flush()
        return instance

    async def count(self, **filters: Any) -> int:
        """
        Count records matching equality filters.

        Args:
            **filters: Field name to value filters

        Returns:
            Number of records matching the filters
        """
        query = select(func.count()).select_from(self.model)

        for field, value in filters.items():
            query = query.where(getattr(self.model, field) == value)

        result = await self.session.execute(query)
        return result.scalar_one()
