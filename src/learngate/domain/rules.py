"""
Rule engine - Declarative request validation.

Rule chains are pipe-delimited constraint lists attached to input fields::

    RuleSet({"message": "required|string|min:10|max:1000"})

Grammar
=======

    chain      := constraint ("|" constraint)*
    constraint := atom | atom ":" arg ("," arg)*

Recognized atoms: required, string, boolean, email, numeric, min, max, in.

Chains are compiled once into typed constraint objects when a RuleSet is
built, so a typo in a rule string raises ConfigurationError at import time
instead of surfacing on the first request.

Evaluation Policy
=================

- Value absent or empty, no ``required``: field is valid, nothing else runs.
- Value absent or empty, ``required`` present: exactly one "is required"
  message, nothing else runs.
- Value present: every remaining constraint runs and all failures are
  collected in chain order.
- Fields missing from the RuleSet are ignored.
"""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Union

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

_MISSING = object()


class RuleTag(str, Enum):
    """Atoms of the rule-string DSL."""

    REQUIRED = "required"
    STRING = "string"
    BOOLEAN = "boolean"
    EMAIL = "email"
    NUMERIC = "numeric"
    MIN = "min"
    MAX = "max"
    IN = "in"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Required:
    tag: ClassVar[RuleTag] = RuleTag.REQUIRED

    def check(self, field: str, value: Any) -> str | None:
        if is_empty(value):
            return f"{field} is required"
        return None


@dataclass(frozen=True)
class IsString:
    tag: ClassVar[RuleTag] = RuleTag.STRING

    def check(self, field: str, value: Any) -> str | None:
        if not isinstance(value, str):
            return f"{field} must be a string"
        return None


@dataclass(frozen=True)
class IsBoolean:
    tag: ClassVar[RuleTag] = RuleTag.BOOLEAN

    def check(self, field: str, value: Any) -> str | None:
        if not isinstance(value, bool):
            return f"{field} must be a boolean"
        return None


@dataclass(frozen=True)
class IsEmail:
    tag: ClassVar[RuleTag] = RuleTag.EMAIL

    def check(self, field: str, value: Any) -> str | None:
        if not isinstance(value, str):
            return f"{field} must be a valid email"
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return f"{field} must be a valid email"
        return None


@dataclass(frozen=True)
class IsNumeric:
    tag: ClassVar[RuleTag] = RuleTag.NUMERIC

    def check(self, field: str, value: Any) -> str | None:
        if _is_number(value):
            if math.isfinite(value):
                return None
        elif isinstance(value, str):
            try:
                if math.isfinite(float(value)):
                    return None
            except ValueError:
                pass
        return f"{field} must be numeric"


@dataclass(frozen=True)
class Min:
    """Lower bound: length for strings and lists, magnitude for numbers."""

    tag: ClassVar[RuleTag] = RuleTag.MIN
    bound: int

    def check(self, field: str, value: Any) -> str | None:
        if isinstance(value, (str, list)):
            if len(value) < self.bound:
                return f"{field} must be at least {self.bound} characters"
        elif _is_number(value) and value < self.bound:
            return f"{field} must be at least {self.bound}"
        return None


@dataclass(frozen=True)
class Max:
    """Upper bound, symmetric to Min."""

    tag: ClassVar[RuleTag] = RuleTag.MAX
    bound: int

    def check(self, field: str, value: Any) -> str | None:
        if isinstance(value, (str, list)):
            if len(value) > self.bound:
                return f"{field} must not exceed {self.bound} characters"
        elif _is_number(value) and value > self.bound:
            return f"{field} must not exceed {self.bound}"
        return None


def _as_number(value: Any) -> float | None:
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class MinValue:
    """Lower bound on magnitude; used when the chain also declares ``numeric``."""

    tag: ClassVar[RuleTag] = RuleTag.MIN
    bound: int

    def check(self, field: str, value: Any) -> str | None:
        # Unparseable values are reported by ``numeric``.
        number = _as_number(value)
        if number is not None and number < self.bound:
            return f"{field} must be at least {self.bound}"
        return None


@dataclass(frozen=True)
class MaxValue:
    tag: ClassVar[RuleTag] = RuleTag.MAX
    bound: int

    def check(self, field: str, value: Any) -> str | None:
        number = _as_number(value)
        if number is not None and number > self.bound:
            return f"{field} must not exceed {self.bound}"
        return None


@dataclass(frozen=True)
class OneOf:
    tag: ClassVar[RuleTag] = RuleTag.IN
    choices: tuple[str, ...]

    def check(self, field: str, value: Any) -> str | None:
        if not isinstance(value, str) or value not in self.choices:
            return f"{field} must be one of: {', '.join(self.choices)}"
        return None


FieldConstraint = Union[
    Required, IsString, IsBoolean, IsEmail, IsNumeric, Min, Max, MinValue, MaxValue, OneOf
]

_NULLARY = {
    RuleTag.REQUIRED: Required,
    RuleTag.STRING: IsString,
    RuleTag.BOOLEAN: IsBoolean,
    RuleTag.EMAIL: IsEmail,
    RuleTag.NUMERIC: IsNumeric,
}


def is_empty(value: Any) -> bool:
    """Absent, null and empty-string values all count as empty."""
    return value is _MISSING or value is None or value == ""


def _parse_bound(chain: str, tag: RuleTag, args: list[str]) -> int:
    if len(args) != 1:
        raise ConfigurationError(f"'{tag.value}' takes exactly one argument in rule chain {chain!r}")
    try:
        return int(args[0])
    except ValueError:
        raise ConfigurationError(
            f"'{tag.value}' bound must be an integer, got {args[0]!r} in rule chain {chain!r}"
        ) from None


def _compile_atom(chain: str, atom: str) -> FieldConstraint:
    name, sep, raw_args = atom.partition(":")
    name = name.strip()
    try:
        tag = RuleTag(name)
    except ValueError:
        raise ConfigurationError(f"Unknown rule {name!r} in rule chain {chain!r}") from None

    args = [arg.strip() for arg in raw_args.split(",")] if sep else []
    if any(arg == "" for arg in args):
        raise ConfigurationError(f"Empty argument for '{tag.value}' in rule chain {chain!r}")

    if tag in _NULLARY:
        if args:
            raise ConfigurationError(f"'{tag.value}' takes no arguments in rule chain {chain!r}")
        return _NULLARY[tag]()
    if tag is RuleTag.MIN:
        return Min(_parse_bound(chain, tag, args))
    if tag is RuleTag.MAX:
        return Max(_parse_bound(chain, tag, args))
    if not args:
        raise ConfigurationError(f"'in' needs at least one literal in rule chain {chain!r}")
    return OneOf(tuple(args))


def compile(rule_chain: str) -> tuple[FieldConstraint, ...]:  # noqa: A001
    """
    Parse a rule chain into an ordered tuple of constraints.

    A chain that declares ``numeric`` bounds the value's magnitude with
    ``min``/``max``, so ``"10"`` passes ``numeric|min:5``. Every other
    chain bounds the length of strings and lists.

    Raises:
        ConfigurationError: Empty chain, empty atom, unknown atom,
            wrong argument count or a non-integer bound.
    """
    if not rule_chain or not rule_chain.strip():
        raise ConfigurationError("Rule chain must not be empty")

    constraints = []
    for atom in rule_chain.split("|"):
        if not atom.strip():
            raise ConfigurationError(f"Empty rule in rule chain {rule_chain!r}")
        constraints.append(_compile_atom(rule_chain, atom))

    if any(isinstance(constraint, IsNumeric) for constraint in constraints):
        constraints = [
            MinValue(c.bound) if isinstance(c, Min) else MaxValue(c.bound) if isinstance(c, Max) else c
            for c in constraints
        ]
    return tuple(constraints)


def evaluate(value: Any, constraints: tuple[FieldConstraint, ...], field: str = "value") -> list[str]:
    """Evaluate one field value against its compiled constraints."""
    if is_empty(value):
        for constraint in constraints:
            if constraint.tag is RuleTag.REQUIRED:
                return [constraint.check(field, value)]
        return []

    errors = []
    for constraint in constraints:
        message = constraint.check(field, value)
        if message is not None:
            errors.append(message)
    return errors


class RuleSet(Mapping):
    """Immutable, compiled mapping of field name to constraints."""

    def __init__(self, rules: Mapping[str, str]) -> None:
        self._source = MappingProxyType(dict(rules))
        self._compiled = MappingProxyType(
            {field: compile(chain) for field, chain in rules.items()}
        )

    def __getitem__(self, field: str) -> tuple[FieldConstraint, ...]:
        return self._compiled[field]

    def __iter__(self) -> Iterator[str]:
        return iter(self._compiled)

    def __len__(self) -> int:
        return len(self._compiled)

    @property
    def source(self) -> Mapping[str, str]:
        """Rule strings as declared."""
        return self._source

    def __repr__(self) -> str:
        return f"RuleSet({dict(self._source)!r})"


def validate(record: Mapping[str, Any], rule_set: RuleSet) -> dict[str, list[str]]:
    """
    Validate a record against a rule set.

    Returns:
        Field name to ordered messages; empty dict when the record is valid.
    """
    errors: dict[str, list[str]] = {}
    for field, constraints in rule_set.items():
        messages = evaluate(record.get(field, _MISSING), constraints, field=field)
        if messages:
            errors[field] = messages
    return errors
