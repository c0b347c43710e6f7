"""Presence validation — required-attribute rules and the validation pass.

Rules are declared per command type and are append-only: every
declaration returns a new :class:`PresenceRule`, never mutating the one a
parent type (or an earlier declaration) holds.

Validation is a soft gate. A failed pass is recorded in a
:class:`ValidationResult`, never raised; a command with missing
attributes can still be constructed and run.
"""

from __future__ import annotations

import keyword
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

ATTRIBUTE_MISSING = "attribute missing"


def merge_errors(
    current: Mapping[str, list[str]],
    new: Mapping[str, list[str]],
) -> dict[str, list[str]]:
    """Merge two error mappings.

    Messages for the same attribute are concatenated with duplicates
    dropped; the first occurrence of each distinct message keeps its place.
    """
    merged: dict[str, list[str]] = {key: list(messages) for key, messages in current.items()}
    for key, messages in new.items():
        bucket = merged.setdefault(key, [])
        for message in messages:
            if message not in bucket:
                bucket.append(message)
    return {key: messages for key, messages in merged.items() if messages}


def check_attribute_name(name: str) -> str:
    """Return *name* if it can be used as an attribute name, else raise ValueError."""
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        msg = f"Invalid attribute name: {name!r}"
        raise ValueError(msg)
    if name.startswith("_"):
        msg = f"Attribute names may not start with an underscore: {name!r}"
        raise ValueError(msg)
    return name


@dataclass(frozen=True)
class PresenceRule:
    """Requires each named attribute to be present in the input mapping."""

    attributes: tuple[str, ...] = ()

    def extend(self, *names: str | Iterable[str]) -> PresenceRule:
        """Return a new rule with *names* appended (duplicates dropped)."""
        combined = list(self.attributes)
        for name in _flatten(names):
            check_attribute_name(name)
            if name not in combined:
                combined.append(name)
        return PresenceRule(tuple(combined))

    def check(self, inputs: Mapping[str, Any]) -> tuple[bool, dict[str, list[str]]]:
        """Evaluate the rule against *inputs*.

        Returns ``(valid, errors)`` where *errors* maps each missing
        attribute to ``["attribute missing"]``.
        """
        errors: dict[str, list[str]] = {}
        for name in self.attributes:
            if name not in inputs:
                errors[name] = [ATTRIBUTE_MISSING]
        return not errors, errors

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def __contains__(self, name: object) -> bool:
        return name in self.attributes


def _flatten(names: Iterable[Any]) -> Iterable[str]:
    for item in names:
        if isinstance(item, str):
            yield item
        else:
            yield from _flatten(item)


class ValidationResult(BaseModel):
    """Outcome of one validation pass.

    Attributes:
        valid: True when every declared attribute was present.
        errors: Attribute name -> non-empty list of messages. Attributes
            without errors are absent.
    """

    model_config = {"frozen": True}

    valid: bool
    errors: dict[str, list[str]] = Field(default_factory=dict)

    def merge(self, errors: Mapping[str, list[str]], *, valid: bool = True) -> ValidationResult:
        """Return a new result with *errors* merged in and validity AND-ed."""
        return ValidationResult(
            valid=self.valid and valid,
            errors=merge_errors(self.errors, errors),
        )


class Validator:
    """Runs a command type's rules against one instance's inputs.

    Each :meth:`validate` call starts from a fresh result, so a second
    pass replaces the first rather than accumulating into it.
    """

    def __init__(self, rules: Iterable[PresenceRule]) -> None:
        self._rules = tuple(rules)
        self._result: ValidationResult | None = None
        self._values: dict[str, Any] = {}

    @property
    def rules(self) -> tuple[PresenceRule, ...]:
        return self._rules

    @property
    def result(self) -> ValidationResult | None:
        """Last validation result, or None before the first pass."""
        return self._result

    @property
    def values(self) -> dict[str, Any]:
        """Validated attribute values from the last pass."""
        return dict(self._values)

    def validate(self, inputs: Mapping[str, Any]) -> ValidationResult:
        result = ValidationResult(valid=True)
        values: dict[str, Any] = {}
        for rule in self._rules:
            rule_valid, rule_errors = rule.check(inputs)
            result = result.merge(rule_errors, valid=rule_valid)
            for name in rule:
                if name in inputs:
                    values[name] = inputs[name]
        self._result = result
        self._values = values
        return result
