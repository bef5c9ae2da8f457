"""Validation package - declarative field rules with aggregated results.

Rules are plain data (FieldRule / RecordRule collected in an immutable
RuleSet). ConstraintValidator evaluates every rule and returns a
ValidationResult; it raises only for programmer errors
(ConfigurationError) and failed lookups (CollaboratorFailure).
"""

from .exceptions import CollaboratorFailure, ConfigurationError, ValidationLibraryError
from .result import ValidationResult, Violation
from .rules import FieldRule, RecordRule, RuleKind, RuleSet
from .validator import ConstraintValidator, validate, validate_async

__all__ = [
    "ConstraintValidator",
    "validate",
    "validate_async",
    "FieldRule",
    "RecordRule",
    "RuleKind",
    "RuleSet",
    "ValidationResult",
    "Violation",
    "ValidationLibraryError",
    "ConfigurationError",
    "CollaboratorFailure",
]
