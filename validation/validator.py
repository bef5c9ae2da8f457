"""
Constraint Validator

Evaluates a RuleSet against one record and aggregates every failure into a
ValidationResult. Evaluation never stops early: all FieldRules run in
declaration order, then all RecordRules run, whatever the FieldRules found.

Records may be mappings (looked up by key) or objects (looked up by
attribute). A rule naming a field the record does not have is a
ConfigurationError, as is a value whose type does not fit the rule kind.

The only I/O is the UNIQUE rule's injected ``exists`` lookup. If it raises,
times out or answers with anything but a bool, the call fails with
CollaboratorFailure instead of guessing a pass or a fail.
"""

import asyncio
import inspect
from collections.abc import Mapping
from decimal import Decimal
from numbers import Real
from typing import Any, Optional

import structlog

from .exceptions import CollaboratorFailure, ConfigurationError
from .result import ValidationResult
from .rules import FieldRule, RuleKind, RuleSet

logger = structlog.get_logger(__name__)

_MISSING = object()


class ConstraintValidator:
    """
    Stateless validator. One instance can be shared by any number of
    concurrent callers; all per-call state lives in the returned result.
    """

    def validate(self, record: Any, rule_set: RuleSet) -> ValidationResult:
        """
        Validate ``record`` against ``rule_set``.

        Args:
            record: Mapping or object exposing every field the rule set names
            rule_set: Rules to evaluate

        Returns:
            ValidationResult listing every violation (empty when valid)

        Raises:
            ConfigurationError: record is None, lacks a referenced field, or
                holds a value the rule kind cannot evaluate
            CollaboratorFailure: a uniqueness lookup failed to answer
        """
        self._check_record(record, rule_set)
        result = ValidationResult(rule_set=rule_set.name)

        for rule in rule_set.field_rules:
            value = self._read_field(record, rule.field)
            if rule.kind is RuleKind.UNIQUE:
                passed = value is None or not self._lookup(rule, value)
            else:
                passed = self._field_passes(rule, value)
            if not passed:
                result.add_violation(rule.field, rule.message, rule.kind)

        self._apply_record_rules(record, rule_set, result)
        self._log_outcome(result)
        return result

    async def validate_async(
        self,
        record: Any,
        rule_set: RuleSet,
        lookup_timeout: Optional[float] = None
    ) -> ValidationResult:
        """
        Coroutine variant of :meth:`validate`.

        Suspends only at uniqueness lookups that return an awaitable. When
        ``lookup_timeout`` is given, each awaited lookup is bounded by it and
        an expiry raises CollaboratorFailure. Synchronous lookups are called
        inline and are not bounded.
        """
        self._check_record(record, rule_set)
        result = ValidationResult(rule_set=rule_set.name)

        for rule in rule_set.field_rules:
            value = self._read_field(record, rule.field)
            if rule.kind is RuleKind.UNIQUE:
                passed = value is None or not await self._lookup_async(rule, value, lookup_timeout)
            else:
                passed = self._field_passes(rule, value)
            if not passed:
                result.add_violation(rule.field, rule.message, rule.kind)

        self._apply_record_rules(record, rule_set, result)
        self._log_outcome(result)
        return result

    # Record access

    @staticmethod
    def _check_record(record: Any, rule_set: RuleSet) -> None:
        if rule_set is None:
            raise ConfigurationError("A rule set is required")
        if record is None:
            raise ConfigurationError(f"Cannot validate a missing record against '{rule_set.name}'")
        if rule_set.record_type is not None and not isinstance(record, rule_set.record_type):
            raise ConfigurationError(
                f"RuleSet '{rule_set.name}' is bound to {rule_set.record_type.__name__}, "
                f"got {type(record).__name__}"
            )

    @staticmethod
    def _read_field(record: Any, name: str) -> Any:
        if isinstance(record, Mapping):
            value = record.get(name, _MISSING)
        else:
            value = getattr(record, name, _MISSING)
        if value is _MISSING:
            raise ConfigurationError(
                f"Record of type {type(record).__name__} has no field '{name}'",
                field=name
            )
        return value

    # Field rule evaluators

    def _field_passes(self, rule: FieldRule, value: Any) -> bool:
        if rule.kind is RuleKind.REQUIRED:
            return value is not None

        if rule.kind is RuleKind.NOT_BLANK:
            if value is None:
                return False
            if isinstance(value, str):
                return bool(value.strip())
            return True

        if value is None and rule.skips_none:
            return True

        if rule.kind is RuleKind.LENGTH:
            try:
                size = len(value)
            except TypeError as e:
                raise ConfigurationError(
                    f"Length rule on '{rule.field}' cannot measure a {type(value).__name__}",
                    field=rule.field
                ) from e
            return self._within(size, rule)

        if rule.kind is RuleKind.RANGE:
            if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
                raise ConfigurationError(
                    f"Range rule on '{rule.field}' needs a number, got {type(value).__name__}",
                    field=rule.field
                )
            return self._within(value, rule)

        if rule.kind is RuleKind.PATTERN:
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"Pattern rule on '{rule.field}' needs a string, got {type(value).__name__}",
                    field=rule.field
                )
            return rule.parameters['regex'].fullmatch(value) is not None

        raise ConfigurationError(f"Unsupported rule kind {rule.kind!r}", field=rule.field)

    @staticmethod
    def _within(value: Any, rule: FieldRule) -> bool:
        lower = rule.parameters.get('min')
        upper = rule.parameters.get('max')
        if lower is not None and value < lower:
            return False
        if upper is not None and value > upper:
            return False
        return True

    # Uniqueness lookups

    def _lookup(self, rule: FieldRule, value: Any) -> bool:
        exists = rule.parameters['exists']
        try:
            answer = exists(value)
        except CollaboratorFailure:
            raise
        except Exception as e:
            raise CollaboratorFailure(
                f"Uniqueness lookup for '{rule.field}' failed: {e}",
                field=rule.field
            ) from e

        if inspect.isawaitable(answer):
            if inspect.iscoroutine(answer):
                answer.close()
            raise ConfigurationError(
                f"Uniqueness lookup for '{rule.field}' is asynchronous; use validate_async",
                field=rule.field
            )
        return self._interpret_answer(rule, answer)

    async def _lookup_async(self, rule: FieldRule, value: Any, timeout: Optional[float]) -> bool:
        exists = rule.parameters['exists']
        try:
            answer = exists(value)
            if inspect.isawaitable(answer):
                answer = await self._await_bounded(rule, answer, timeout)
        except CollaboratorFailure:
            raise
        except Exception as e:
            raise CollaboratorFailure(
                f"Uniqueness lookup for '{rule.field}' failed: {e}",
                field=rule.field
            ) from e
        return self._interpret_answer(rule, answer)

    @staticmethod
    async def _await_bounded(rule: FieldRule, answer: Any, timeout: Optional[float]) -> Any:
        if timeout is None:
            return await answer
        # A TimeoutError raised by the lookup itself is a lookup failure, not an expiry
        task = asyncio.ensure_future(answer)
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            raise CollaboratorFailure(
                f"Uniqueness lookup for '{rule.field}' timed out after {timeout}s",
                field=rule.field,
                error_code='LOOKUP_TIMEOUT'
            )
        return task.result()

    @staticmethod
    def _interpret_answer(rule: FieldRule, answer: Any) -> bool:
        if not isinstance(answer, bool):
            raise CollaboratorFailure(
                f"Uniqueness lookup for '{rule.field}' returned {type(answer).__name__}, expected bool",
                field=rule.field,
                error_code='LOOKUP_BAD_ANSWER'
            )
        return answer

    # Record rules and reporting

    @staticmethod
    def _apply_record_rules(record: Any, rule_set: RuleSet, result: ValidationResult) -> None:
        for rule in rule_set.record_rules:
            try:
                satisfied = rule.predicate(record)
            except Exception as e:
                raise ConfigurationError(
                    f"Record rule '{rule.name}' raised {type(e).__name__}: {e}",
                    field=rule.name
                ) from e
            if not satisfied:
                result.add_violation(rule.name, rule.message)

    @staticmethod
    def _log_outcome(result: ValidationResult) -> None:
        if result.is_valid:
            logger.debug("validation_passed", rule_set=result.rule_set)
        else:
            logger.debug(
                "validation_failed",
                rule_set=result.rule_set,
                violation_keys=[v.key for v in result.violations],
            )


_default_validator = ConstraintValidator()


def validate(record: Any, rule_set: RuleSet) -> ValidationResult:
    """Validate with the shared default validator."""
    return _default_validator.validate(record, rule_set)


async def validate_async(
    record: Any,
    rule_set: RuleSet,
    lookup_timeout: Optional[float] = None
) -> ValidationResult:
    return await _default_validator.validate_async(record, rule_set, lookup_timeout=lookup_timeout)
