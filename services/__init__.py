"""
Service Package

Business logic between the blueprints and the data layer. Services take an
optional SQLAlchemy session (falling back to Flask-SQLAlchemy's scoped
session) and return ServiceResult containers instead of raising for expected
outcomes such as rule violations or missing users.
"""

from .base_service import (
    BaseService,
    DatabaseError,
    NotFoundError,
    ServiceError,
    ServiceResult,
)
from .profile_service import ProfileService
from .user_service import UserService
from .validation_service import ValidationService

__all__ = [
    'BaseService',
    'ServiceError',
    'DatabaseError',
    'NotFoundError',
    'ServiceResult',
    'ValidationService',
    'UserService',
    'ProfileService',
]
