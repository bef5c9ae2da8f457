"""
Validation outcome containers.

A ValidationResult is created fresh for every validation call and carries
every violation found, in evaluation order. ``errors`` is the key -> message
view used by HTTP responses; when several rules fail for the same key the
first failure is kept.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .rules import RuleKind


@dataclass(frozen=True)
class Violation:
    """One failed rule: the field (or record rule name) and its message."""
    key: str
    message: str
    kind: Optional[RuleKind] = None  # None for record rules

    @property
    def is_record_rule(self) -> bool:
        return self.kind is None


@dataclass
class ValidationResult:
    """
    Aggregated outcome of one validation call.

    Attributes:
        rule_set: Name of the rule set that produced the result
        violations: Every violation found, in evaluation order
    """
    rule_set: str = ""
    violations: List[Violation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def errors(self) -> Dict[str, str]:
        """Key -> message mapping, one entry per distinct key (first failure wins)."""
        errors: Dict[str, str] = {}
        for violation in self.violations:
            errors.setdefault(violation.key, violation.message)
        return errors

    def add_violation(self, key: str, message: str, kind: Optional[RuleKind] = None) -> None:
        self.violations.append(Violation(key, message, kind))

    def has_error(self, key: str) -> bool:
        return any(v.key == key for v in self.violations)
