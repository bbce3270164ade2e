"""
Base Repository Pattern with SQLAlchemy

Provides common async operations for all repositories.
"""
from typing import TypeVar, Generic, Optional, List, Type, Any

from sqlalchemy.ext.asyncio import AsyncSession

from database.models.base import Base


# Generic type for model classes
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository with common async database operations.

    Subclasses should set the `model` class attribute to their specific
    SQLAlchemy model class.

    Example:
        class ArticleRepository(BaseRepository[Article]):
            model = Article
    """

    model: Type[ModelT]

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get(self, entity_id: Any) -> Optional[ModelT]:
        """
        Get entity by primary key.

        Args:
            entity_id: Primary key value (tuple for composite keys)

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, entity_id)

    async def add_all(self, entities: List[ModelT]) -> List[ModelT]:
        """
        Add multiple entities.

        Args:
            entities: List of entities to add

        Returns:
            List of added entities with any auto-generated values
        """
        self.session.add_all(entities)
        await self.session.flush()
        return entities
