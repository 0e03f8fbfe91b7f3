"""Base repository class with common database operations."""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Base repository providing common CRUD operations."""

    def __init__(self, model: Type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int, for_update: bool = False) -> Optional[T]:
        """
        Get entity by ID.

        Args:
            id: Entity ID
            for_update: Take a row lock for the rest of the transaction

        Returns:
            Entity or None if not found
        """
        query = self.db.query(self.model).filter(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create(self, obj: T) -> T:
        """
        Add an entity and flush so its primary key is assigned.

        Args:
            obj: Entity to create

        Returns:
            Created entity
        """
        self.db.add(obj)
        self.db.flush()
        self.db.refresh(obj)
        return obj

    def update(self, obj: T) -> T:
        """
        Flush pending changes on an entity.

        Args:
            obj: Entity to update

        Returns:
            Updated entity
        """
        self.db.flush()
        self.db.refresh(obj)
        return obj

    def delete(self, obj: T) -> None:
        """
        Delete entity.

        Args:
            obj: Entity to delete
        """
        self.db.delete(obj)
        self.db.flush()

    def table_exists(self) -> bool:
        """
        Check whether the model's table has been migrated into the database.

        Returns:
            True if the table exists on the session's connection
        """
        return inspect(self.db.connection()).has_table(self.model.__tablename__)
