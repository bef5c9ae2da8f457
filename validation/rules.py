"""
Rule Declaration Model

Plain-data declarations of the constraints a record must satisfy. Constraints
are bound to fields by name in ordinary code rather than attached to the
record type, so a rule set can be built once at import time and shared
read-only by every validation call.

Components:
- RuleKind: enumeration of supported single-field constraint kinds
- FieldRule: one constraint on one named field
- RecordRule: one whole-record (cross-field) predicate
- RuleSet: immutable ordered collection of FieldRules and RecordRules

Parameter consistency is checked when a rule is declared, so a malformed
declaration fails at application start-up with ``ConfigurationError``.
"""

import re
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from types import MappingProxyType
from typing import Any, Callable, FrozenSet, Mapping, Optional, Pattern, Tuple, Union

from .exceptions import ConfigurationError


# Injected read-only capability: returns True when the value is already claimed.
ExistsLookup = Callable[[Any], Any]
RecordPredicate = Callable[[Any], bool]


class RuleKind(Enum):
    """Single-field constraint kinds."""
    REQUIRED = "required"
    NOT_BLANK = "not_blank"
    LENGTH = "length"
    RANGE = "range"
    PATTERN = "pattern"
    UNIQUE = "unique"


# Kinds that pass on a None value; presence is a separate REQUIRED/NOT_BLANK rule.
NULL_SKIPPING_KINDS: FrozenSet[RuleKind] = frozenset({
    RuleKind.LENGTH,
    RuleKind.RANGE,
    RuleKind.PATTERN,
    RuleKind.UNIQUE,
})


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class FieldRule:
    """
    One declared constraint on one named field.

    Attributes:
        field: Name of the record attribute (or mapping key) to check
        kind: Constraint kind
        message: Static message reported when the constraint fails
        parameters: Kind-specific parameters:
            LENGTH  -> ``min`` / ``max`` (ints, inclusive, either may be None)
            RANGE   -> ``min`` / ``max`` (numbers, inclusive, either may be None)
            PATTERN -> ``regex`` (compiled pattern, matched against the full string)
            UNIQUE  -> ``exists`` (callable returning True when the value is taken)

    Prefer the named constructors (``FieldRule.length(...)`` etc.) over
    passing ``parameters`` by hand.
    """
    field: str
    kind: RuleKind
    message: str
    parameters: Mapping[str, Any] = dataclasses.field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field:
            raise ConfigurationError("FieldRule field must be a non-empty string", field=self.field)
        if not isinstance(self.kind, RuleKind):
            raise ConfigurationError(f"Unknown rule kind: {self.kind!r}", field=self.field)
        if not isinstance(self.message, str) or not self.message:
            raise ConfigurationError("FieldRule message must be a non-empty string", field=self.field)

        params = dict(self.parameters)
        self._check_parameters(params)
        object.__setattr__(self, 'parameters', MappingProxyType(params))

    def _check_parameters(self, params: dict) -> None:
        """Verify the parameters match the rule kind; normalises ``regex`` in place."""
        allowed = {
            RuleKind.REQUIRED: set(),
            RuleKind.NOT_BLANK: set(),
            RuleKind.LENGTH: {'min', 'max'},
            RuleKind.RANGE: {'min', 'max'},
            RuleKind.PATTERN: {'regex'},
            RuleKind.UNIQUE: {'exists'},
        }[self.kind]

        unexpected = set(params) - allowed
        if unexpected:
            raise ConfigurationError(
                f"Parameters {sorted(unexpected)} are not valid for a {self.kind.value} rule",
                field=self.field
            )

        if self.kind is RuleKind.LENGTH:
            lower, upper = params.get('min'), params.get('max')
            for bound in (lower, upper):
                if bound is not None and (not isinstance(bound, int) or isinstance(bound, bool) or bound < 0):
                    raise ConfigurationError(
                        "Length bounds must be non-negative integers",
                        field=self.field
                    )
            self._check_bounds(lower, upper)

        elif self.kind is RuleKind.RANGE:
            lower, upper = params.get('min'), params.get('max')
            for bound in (lower, upper):
                if bound is not None and not _is_number(bound):
                    raise ConfigurationError("Range bounds must be numbers", field=self.field)
            self._check_bounds(lower, upper)

        elif self.kind is RuleKind.PATTERN:
            regex = params.get('regex')
            if isinstance(regex, str):
                try:
                    regex = re.compile(regex)
                except re.error as e:
                    raise ConfigurationError(
                        f"Invalid regular expression: {e}",
                        field=self.field
                    ) from e
            if not isinstance(regex, re.Pattern):
                raise ConfigurationError("Pattern rule requires a regex", field=self.field)
            params['regex'] = regex

        elif self.kind is RuleKind.UNIQUE:
            if not callable(params.get('exists')):
                raise ConfigurationError(
                    "Uniqueness rule requires a callable 'exists' lookup",
                    field=self.field
                )

    def _check_bounds(self, lower: Any, upper: Any) -> None:
        if lower is None and upper is None:
            raise ConfigurationError(
                f"A {self.kind.value} rule needs at least one bound",
                field=self.field
            )
        if lower is not None and upper is not None and lower > upper:
            raise ConfigurationError(
                f"Lower bound {lower} exceeds upper bound {upper}",
                field=self.field
            )

    @property
    def skips_none(self) -> bool:
        return self.kind in NULL_SKIPPING_KINDS

    # Named constructors

    @classmethod
    def required(cls, field_name: str, message: str) -> 'FieldRule':
        """Value must not be None."""
        return cls(field_name, RuleKind.REQUIRED, message)

    @classmethod
    def not_blank(cls, field_name: str, message: str) -> 'FieldRule':
        """Value must not be None nor, for text, empty after trimming."""
        return cls(field_name, RuleKind.NOT_BLANK, message)

    @classmethod
    def length(
        cls,
        field_name: str,
        message: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None
    ) -> 'FieldRule':
        return cls(field_name, RuleKind.LENGTH, message, {'min': min_length, 'max': max_length})

    @classmethod
    def range(
        cls,
        field_name: str,
        message: str,
        min_value: Optional[Real] = None,
        max_value: Optional[Real] = None
    ) -> 'FieldRule':
        return cls(field_name, RuleKind.RANGE, message, {'min': min_value, 'max': max_value})

    @classmethod
    def pattern(cls, field_name: str, regex: Union[str, Pattern], message: str) -> 'FieldRule':
        return cls(field_name, RuleKind.PATTERN, message, {'regex': regex})

    @classmethod
    def unique(cls, field_name: str, exists: ExistsLookup, message: str) -> 'FieldRule':
        """Value must not already be claimed according to ``exists(value)``."""
        return cls(field_name, RuleKind.UNIQUE, message, {'exists': exists})


@dataclass(frozen=True)
class RecordRule:
    """
    One whole-record constraint.

    The predicate receives the full record and returns True when the record
    satisfies the rule. Predicates must return True when any field they
    depend on is None, so unset optional fields never produce spurious
    failures.
    """
    name: str
    predicate: RecordPredicate = field(hash=False, compare=False)
    message: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError("RecordRule name must be a non-empty string")
        if not callable(self.predicate):
            raise ConfigurationError(f"RecordRule '{self.name}' predicate must be callable")
        if not isinstance(self.message, str) or not self.message:
            raise ConfigurationError(f"RecordRule '{self.name}' requires a message")


def _declared_fields(record_type: type) -> Optional[FrozenSet[str]]:
    """Field names declared by a dataclass or named tuple type, if discoverable."""
    if dataclasses.is_dataclass(record_type):
        return frozenset(f.name for f in dataclasses.fields(record_type))
    named_fields = getattr(record_type, '_fields', None)
    if isinstance(named_fields, tuple):
        return frozenset(named_fields)
    return None


@dataclass(frozen=True)
class RuleSet:
    """
    Immutable ordered collection of FieldRules and RecordRules.

    Attributes:
        name: Identifier used in logs
        field_rules: FieldRules in evaluation order
        record_rules: RecordRules in evaluation order
        record_type: Optional record class the rules are bound to. When given,
            every FieldRule field is checked against the class's declared
            fields at construction and every validated record must be an
            instance of it.

    An empty RuleSet is legal and validates every record.
    """
    name: str
    field_rules: Tuple[FieldRule, ...] = ()
    record_rules: Tuple[RecordRule, ...] = ()
    record_type: Optional[type] = None

    def __post_init__(self) -> None:
        field_rules = tuple(self.field_rules)
        record_rules = tuple(self.record_rules)

        for rule in field_rules:
            if not isinstance(rule, FieldRule):
                raise ConfigurationError(f"RuleSet '{self.name}' contains a non-FieldRule: {rule!r}")
        for rule in record_rules:
            if not isinstance(rule, RecordRule):
                raise ConfigurationError(f"RuleSet '{self.name}' contains a non-RecordRule: {rule!r}")

        object.__setattr__(self, 'field_rules', field_rules)
        object.__setattr__(self, 'record_rules', record_rules)

        field_names = {rule.field for rule in field_rules}

        seen_names = set()
        for rule in record_rules:
            if rule.name in seen_names:
                raise ConfigurationError(
                    f"RuleSet '{self.name}' declares record rule '{rule.name}' twice"
                )
            if rule.name in field_names:
                raise ConfigurationError(
                    f"RuleSet '{self.name}': record rule name '{rule.name}' collides with a field rule key",
                    field=rule.name
                )
            seen_names.add(rule.name)

        if self.record_type is not None:
            if not isinstance(self.record_type, type):
                raise ConfigurationError(f"RuleSet '{self.name}' record_type must be a class")
            declared = _declared_fields(self.record_type)
            if declared is not None:
                unknown = [rule.field for rule in field_rules if rule.field not in declared]
                if unknown:
                    raise ConfigurationError(
                        f"RuleSet '{self.name}' references fields not declared on "
                        f"{self.record_type.__name__}: {unknown}",
                        field=unknown[0]
                    )

    @property
    def fields(self) -> Tuple[str, ...]:
        """Distinct field names referenced by FieldRules, in declaration order."""
        return tuple(dict.fromkeys(rule.field for rule in self.field_rules))

    def rules_for(self, field_name: str) -> Tuple[FieldRule, ...]:
        return tuple(rule for rule in self.field_rules if rule.field == field_name)
