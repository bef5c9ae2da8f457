"""
Validation Library Exception Hierarchy

Exceptions raised by the constraint validator. A failed validation is NOT an
exception: it is returned as a ``ValidationResult`` with ``is_valid = False``.
The exceptions below cover the two conditions that must never be mistaken for
a validation outcome:

- ConfigurationError: a programmer error in rule declaration or record shape
  (unknown field, parameters inconsistent with the rule kind, missing record).
- CollaboratorFailure: the injected uniqueness lookup raised, timed out or
  returned something other than a boolean.

Both are meant to propagate to the HTTP layer, which turns them into a generic
5xx response and logs the details.
"""

from typing import Any, Dict, Optional


class ValidationLibraryError(Exception):
    """Base exception for non-data outcomes of the validation library."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for logging."""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details,
            'type': self.__class__.__name__
        }


class ConfigurationError(ValidationLibraryError):
    """Raised when a rule set or the validated record is malformed."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, error_code=kwargs.pop('error_code', 'RULE_CONFIGURATION_ERROR'), **kwargs)
        self.field = field
        if field is not None:
            self.details['field'] = field


class CollaboratorFailure(ValidationLibraryError):
    """Raised when an injected lookup capability fails to answer."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, error_code=kwargs.pop('error_code', 'LOOKUP_FAILURE'), **kwargs)
        self.field = field
        if field is not None:
            self.details['field'] = field
