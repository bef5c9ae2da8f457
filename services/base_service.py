"""
Base Service Layer Implementation

Foundation for the business services: database session injection, the
ServiceResult container returned by every service operation and a
transaction scope that rolls back on failure.

Key Features:
- Constructor injection of a SQLAlchemy session, falling back to the
  Flask-SQLAlchemy scoped session inside an application context
- ServiceResult with three outcomes: success, invalid (carries the
  ValidationResult) and error (carries a ServiceError)
- ``transaction_scope`` context manager committing on success and rolling
  back on any exception
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, Iterator, Optional, TypeVar

import structlog
from flask import has_app_context
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import db
from validation import ValidationResult

logger = structlog.get_logger(__name__)

T = TypeVar('T')


class ServiceError(Exception):
    """Base exception for service layer operations."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        """
        Args:
            message: Human-readable error description
            error_code: Optional error code for programmatic handling
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)


class DatabaseError(ServiceError):
    """Database-specific service error for transaction and query failures."""
    pass


class NotFoundError(ServiceError):
    """Resource not found error for entity lookup failures."""
    pass


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Exactly one of three shapes:
    - success: ``success`` is True and ``data`` holds the payload
    - invalid: the input broke one or more rules; ``validation`` holds them
    - error: ``error`` holds the ServiceError that stopped the operation
    """

    success: bool
    data: Optional[T] = None
    error: Optional[ServiceError] = None
    validation: Optional[ValidationResult] = None

    def __post_init__(self) -> None:
        if self.success and (self.error is not None or self.validation is not None):
            raise ValueError("Successful result cannot contain error information")
        if not self.success and self.error is None and self.validation is None:
            raise ValueError("Failed result must contain error or validation information")

    @property
    def is_invalid(self) -> bool:
        return self.validation is not None and not self.validation.is_valid

    @classmethod
    def success_result(cls, data: T) -> 'ServiceResult[T]':
        return cls(success=True, data=data)

    @classmethod
    def invalid_result(cls, validation: ValidationResult) -> 'ServiceResult[T]':
        """Failed result for input that broke one or more rules."""
        return cls(success=False, validation=validation)

    @classmethod
    def error_result(cls, error: ServiceError) -> 'ServiceResult[T]':
        return cls(success=False, error=error)


class BaseService:
    """
    Base class for business services.

    Usage Example:
        class UserService(BaseService):
            def rename(self, user_id: int, name: str) -> ServiceResult[User]:
                with self.transaction_scope() as session:
                    user = session.get(User, user_id)
                    user.name = name
                return ServiceResult.success_result(user)
    """

    def __init__(self, db_session: Optional[Session] = None) -> None:
        """
        Args:
            db_session: Optional session for dependency injection. If None,
                uses the Flask-SQLAlchemy session from the application context.

        Raises:
            RuntimeError: If no session is given and no application context is active
        """
        if db_session is not None:
            self.db_session = db_session
        elif has_app_context():
            self.db_session = db.session
        else:
            raise RuntimeError(
                f"Service {self.__class__.__name__} requires database session injection "
                "or Flask application context for session access"
            )
        self._service_name = self.__class__.__name__

    @contextmanager
    def transaction_scope(self, autocommit: bool = True) -> Iterator[Session]:
        """
        Context manager for explicit transaction control.

        Commits on success when ``autocommit`` is set and rolls back on any
        exception. SQLAlchemy failures are re-raised as DatabaseError; other
        exceptions propagate unchanged after the rollback.

        Example:
            with self.transaction_scope() as session:
                session.add(user)
        """
        try:
            yield self.db_session
            if autocommit:
                self.db_session.commit()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            logger.warning("transaction_rolled_back", service=self._service_name, error=str(e))
            error_code = "INTEGRITY_ERROR" if isinstance(e, IntegrityError) else "TRANSACTION_FAILED"
            raise DatabaseError(f"Transaction failed: {e}", error_code=error_code, cause=e) from e
        except Exception:
            self.db_session.rollback()
            logger.warning("transaction_rolled_back", service=self._service_name)
            raise
