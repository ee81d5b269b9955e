"""
Base repository interface for data access layer.
This follows the Repository pattern to separate business logic from data access.

Repositories never commit on their own except where a method documents a
transaction boundary; callers own the unit of work.
"""

from typing import Generic, TypeVar, Optional, Type
from sqlalchemy.orm import Session
from abc import ABC

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType], ABC):
    """
    Base repository providing common data access operations.
    All repositories should inherit from this class.
    """

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, entity_id) -> Optional[ModelType]:
        """
        Get entity by ID.

        Subclasses override this with their specific ID field and loading options.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement get_by_id() with specific ID field"
        )

    def add(self, entity: ModelType) -> ModelType:
        """Stage a new entity and flush so generated keys are available"""
        self.db.add(entity)
        self.db.flush()
        return entity

    def count(self) -> int:
        return self.db.query(self.model).count()
