"""Base repository class with common persistence operations.

Repositories flush but never commit: the calling service owns the unit of
work (see ``core.database.transaction``), so several repository calls can
land in one atomic commit.
"""

from typing import Generic, TypeVar, Type, Optional
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.core.base import Base
from portal_backend.core.error_handling import NotFoundError

logger = structlog.get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository class with common CRUD operations."""

    def __init__(self, model: Type[ModelType]):
        """Initialize repository with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    def create(self, db: Session, **kwargs) -> ModelType:
        """Add a new record and flush it so database defaults are populated."""
        instance = self.model(**kwargs)
        db.add(instance)
        db.flush()

        logger.debug(
            "Record created",
            model=self.model.__name__,
            id=str(instance.id)
        )
        return instance

    def get_by_id(self, db: Session, id: UUID, for_update: bool = False) -> Optional[ModelType]:
        """Get record by ID, optionally locking the row for the current transaction."""
        query = db.query(self.model).filter(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_or_raise(self, db: Session, id: UUID, for_update: bool = False) -> ModelType:
        """Get record by ID.

        Raises:
            NotFoundError: If no such record exists
        """
        instance = self.get_by_id(db, id, for_update=for_update)
        if instance is None:
            raise NotFoundError(self.model.__name__, id)
        return instance

    def update(self, db: Session, instance: ModelType, **kwargs) -> ModelType:
        """Set the given fields on an instance and flush."""
        for field, value in kwargs.items():
            if not hasattr(instance, field):
                raise ValueError(f"Invalid field for {self.model.__name__}: {field}")
            setattr(instance, field, value)

        db.flush()
        return instance

    def delete(self, db: Session, instance: ModelType) -> None:
        """Delete an instance and flush."""
        db.delete(instance)
        db.flush()

        logger.debug(
            "Record deleted",
            model=self.model.__name__,
            id=str(instance.id)
        )
