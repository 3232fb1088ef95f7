# backend/app/repositories/base_repository.py
"""
Generic data access for the booking engine's models.

Repositories flush so ids and constraint errors surface early, but they
never commit: the calling service decides when a unit of work ends.
Database errors are re-raised as RepositoryException.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

ModelT = TypeVar("ModelT")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelT]):
    """Primary-key access plus query helpers shared by every repository."""

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, *, for_update: bool = False) -> Optional[ModelT]:
        """
        Load one row by primary key.

        ``for_update`` adds SELECT ... FOR UPDATE where the dialect has it, so
        a read-modify-write by the caller cannot interleave with another writer.
        """
        query = self._build_query().filter(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to load {self.model.__name__}: {str(e)}") from e

    def create(self, **kwargs: Any) -> ModelT:
        """Add a new row and flush it so defaults and the id are populated."""
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            self.db.rollback()
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e
        return entity

    def update(self, id: str, **fields: Any) -> Optional[ModelT]:
        """Set the given columns on an existing row; unknown names are ignored."""
        entity = self.get_by_id(id)
        if entity is None:
            return None
        for column, value in fields.items():
            if hasattr(entity, column):
                setattr(entity, column, value)
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.model.__name__} {id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}") from e
        return entity

    def flush(self) -> None:
        self.db.flush()

    def refresh(self, instance: ModelT) -> None:
        self.db.refresh(instance)

    def find_one_by(self, **criteria: Any) -> Optional[ModelT]:
        """First row matching every ``column=value`` pair."""
        try:
            return self._build_query().filter_by(**criteria).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding {self.model.__name__} by {criteria}: {str(e)}")
            raise RepositoryException(f"Failed to find record: {str(e)}") from e

    # Helpers for subclasses

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[ModelT]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}") from e
