"""
Data access helpers for persisted models.

``BaseRepository`` wraps the common primary-key and existence queries for
one model class. Repositories never commit: ``save`` and ``delete`` only
flush, leaving the transaction boundary to the calling service.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session

from models import db
from models.user import User

ModelType = TypeVar('ModelType')

# Signed 64-bit integer primary keys
MIN_ID = -(2 ** 63)
MAX_ID = 2 ** 63 - 1


class BaseRepository(Generic[ModelType]):
    """
    Generic repository bound to one model class.

    Args:
        model: Mapped model class
        session: SQLAlchemy session; defaults to the Flask-SQLAlchemy scoped
            session, which requires an application context
    """

    def __init__(self, model: Type[ModelType], session: Optional[Session] = None) -> None:
        self.model = model
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else db.session

    def save(self, instance: ModelType) -> ModelType:
        self.session.add(instance)
        self.session.flush()
        return instance

    def find_by_id(self, model_id: Any) -> Optional[ModelType]:
        """Row with the given primary key; ids outside the 64-bit column range match nothing."""
        if isinstance(model_id, int) and not MIN_ID <= model_id <= MAX_ID:
            return None
        return self.session.get(self.model, model_id)

    def find_all(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[ModelType]:
        query = select(self.model).order_by(self.model.id)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return list(self.session.scalars(query))

    def delete(self, instance: ModelType) -> None:
        self.session.delete(instance)
        self.session.flush()

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(self.model))

    def exists_by(self, **criteria: Any) -> bool:
        """True when at least one row matches every ``column=value`` criterion."""
        if not criteria:
            raise ValueError("exists_by requires at least one criterion")
        query = select(exists().where(*(
            getattr(self.model, column) == value for column, value in criteria.items()
        )))
        return bool(self.session.scalar(query))


class UserRepository(BaseRepository[User]):
    """Repository for registered users."""

    def __init__(self, session: Optional[Session] = None) -> None:
        super().__init__(User, session)

    def exists_by_email(self, email: str) -> bool:
        return self.exists_by(email=email)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.email == email)).first()
