# backend/app/repositories/base_repository.py
"""
Base Repository Pattern for the sauna booking platform

Provides the foundation for all repository classes with:
- Common CRUD operations
- Type safety with generics
- Transaction support (managed by services)
- Dialect-aware insert-or-ignore and conditional update helpers

Repositories never commit. Services own the transaction boundary.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize repository with database session and model.

        Args:
            db: SQLAlchemy session (managed by service layer)
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def refresh(self, instance: T) -> None:
        """Refresh an instance from the database."""
        self.db.refresh(instance)

    def create(self, **kwargs) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e

    def flush(self) -> None:
        """Flush pending ORM changes."""
        self.db.flush()

    def update(self, id: str, **kwargs) -> Optional[T]:
        """
        Update an existing entity.

        Only updates provided fields, preserves others.
        """
        try:
            entity = self.get_by_id(id)
            if not entity:
                return None

            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)

            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}") from e

    def count(self, **kwargs) -> int:
        """Count entities matching given criteria."""
        try:
            return self.db.query(self.model).filter_by(**kwargs).count()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting records: {str(e)}")
            raise RepositoryException(f"Failed to count records: {str(e)}")

    def find_one_by(self, **kwargs) -> Optional[T]:
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding one by criteria: {str(e)}")
            raise RepositoryException(f"Failed to find record: {str(e)}")

    def insert_ignore(self, rows: Sequence[Dict[str, Any]], conflict_columns: Sequence[str]) -> int:
        """
        Insert ``rows`` skipping any that collide on ``conflict_columns``.

        Uses ``INSERT ... ON CONFLICT DO NOTHING`` on PostgreSQL and SQLite.

        Returns:
            Number of rows actually inserted
        """
        if not rows:
            return 0

        dialect = self.dialect_name
        if dialect == "postgresql":
            insert_fn = postgresql.insert
        elif dialect == "sqlite":
            insert_fn = sqlite.insert
        else:
            raise RepositoryException(f"insert_ignore is not supported on dialect {dialect}")

        stmt = (
            insert_fn(self.model)
            .values(list(rows))
            .on_conflict_do_nothing(index_elements=list(conflict_columns))
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting {self.model.__name__} rows: {str(e)}")
            raise RepositoryException(f"Failed to insert {self.model.__name__}: {str(e)}") from e
        return max(result.rowcount or 0, 0)

    def conditional_update(self, where: Sequence[Any], values: Dict[str, Any]) -> int:
        """
        Issue a single ``UPDATE ... WHERE`` and return the matched row count.

        Any instances of the model already loaded in this session are expired so
        later reads see the new column values.
        """
        stmt = update(self.model).where(*where).values(**values).execution_options(
            synchronize_session=False
        )
        try:
            self.db.flush()
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Conditional update of {self.model.__name__} failed: {str(e)}")
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}") from e
        self._expire_loaded()
        return result.rowcount or 0

    # Protected helper methods for use by subclasses

    def _expire_loaded(self) -> None:
        for instance in list(self.db.identity_map.values()):
            if isinstance(instance, self.model):
                self.db.expire(instance)

    def _build_query(self) -> Query:
        """Get base query for the model."""
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}")
