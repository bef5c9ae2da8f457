"""
Validation service.

Thin service-layer front for the constraint validator. Every rule set the
application evaluates goes through ``ValidationService.check`` so outcomes are
logged in one place: failures at debug level with the offending keys,
collaborator and configuration errors at error level before they propagate.
"""

from typing import Any, Optional

import structlog

from validation import (
    CollaboratorFailure,
    ConfigurationError,
    ConstraintValidator,
    RuleSet,
    ValidationResult,
)

logger = structlog.get_logger(__name__)


class ValidationService:
    """
    Args:
        validator: ConstraintValidator to delegate to (a fresh one by default)
    """

    def __init__(self, validator: Optional[ConstraintValidator] = None) -> None:
        self.validator = validator or ConstraintValidator()

    def check(self, record: Any, rule_set: RuleSet) -> ValidationResult:
        """
        Validate ``record`` against ``rule_set``.

        Raises:
            CollaboratorFailure: a lookup failed; logged here and re-raised
            ConfigurationError: malformed rule set or record; logged and re-raised
        """
        try:
            result = self.validator.validate(record, rule_set)
        except CollaboratorFailure as e:
            logger.error("validation_lookup_failed", rule_set=rule_set.name,
                         field=e.field, error_code=e.error_code, exc_info=True)
            raise
        except ConfigurationError as e:
            logger.error("validation_misconfigured", rule_set=rule_set.name,
                         field=e.field, exc_info=True)
            raise

        if not result.is_valid:
            logger.info("validation_rejected", rule_set=rule_set.name,
                        keys=sorted(result.errors))
        return result
