"""Command — a single reversible unit of work.

Subclass :class:`Command`, implement :meth:`Command.execute` and
optionally :meth:`Command.compensate`, and declare the inputs it needs::

    class Debit(Command, required=("amount",)):
        def execute(self) -> None:
            ledger.debit(self.amount)

        def compensate(self) -> None:
            ledger.credit(self.amount)

    Debit.call(amount=10)

Construction stores the input mapping and validates it immediately.
Every declared attribute found in the mapping becomes an instance
attribute; missing ones are recorded in :attr:`Command.errors` but do not
stop construction or :meth:`Command.run` (soft gate).

``run()`` never compensates. Undoing a standalone command is the caller's
job; an :class:`~reversible.invoker.Invoker` does it for sequences.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Any, ClassVar, Self

from reversible.errors import CommandFailure, CommandReuseError
from reversible.runtime import get_runtime
from reversible.validation import PresenceRule, ValidationResult, Validator

logger = logging.getLogger(__name__)


class CommandState(StrEnum):
    """Where a command is in its single run."""

    CREATED = "created"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def freeze_inputs(
    inputs: Mapping[str, Any] | None,
    overrides: Mapping[str, Any],
) -> Mapping[str, Any]:
    """Return a read-only input mapping.

    An existing read-only mapping with no *overrides* is returned as-is so
    that one mapping object can be shared by reference.
    """
    if isinstance(inputs, MappingProxyType) and not overrides:
        return inputs
    merged: dict[str, Any] = dict(inputs or {})
    merged.update(overrides)
    return MappingProxyType(merged)


class Command:
    """Base class for reversible units of work.

    Class keywords:
        required: Attribute names that must be present in the inputs.
            Equivalent to calling :meth:`declare_required` after the class
            body.
    """

    _presence: ClassVar[PresenceRule] = PresenceRule()

    def __init_subclass__(cls, *, required: Iterable[str] = (), **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if required:
            cls.declare_required(*required)

    # ------------------------------------------------------------------
    # Type-level rule declaration
    # ------------------------------------------------------------------

    @classmethod
    def declare_required(cls, *names: str | Iterable[str]) -> None:
        """Require *names* to be present in every instance's inputs.

        Repeated declarations accumulate; a name is only ever checked
        once. Rules are inherited by subclasses, and declaring on a
        subclass never changes its parents.

        Raises:
            ValueError: If a name is not a usable attribute name or would
                shadow an attribute of this class.
        """
        rule = cls._presence.extend(*names)
        for name in rule.attributes:
            if name not in cls._presence and hasattr(cls, name):
                msg = f"{cls.__name__}.{name} already exists; cannot use it as an input name"
                raise ValueError(msg)
        cls._presence = rule

    @classmethod
    def required_attributes(cls) -> tuple[str, ...]:
        return cls._presence.attributes

    @classmethod
    def rules(cls) -> tuple[PresenceRule, ...]:
        return (cls._presence,)

    # ------------------------------------------------------------------
    # Construction and validation
    # ------------------------------------------------------------------

    def __init__(self, inputs: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        self._inputs = freeze_inputs(inputs, kwargs)
        self._validator = Validator(self.rules())
        self._state: StrEnum = CommandState.CREATED
        self.validate()

    @classmethod
    def call(cls, inputs: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Self:
        """Construct with *inputs*, run, and return the instance."""
        instance = cls(inputs, **kwargs)
        instance.run()
        return instance

    @property
    def inputs(self) -> Mapping[str, Any]:
        return self._inputs

    @property
    def state(self) -> StrEnum:
        return self._state

    @property
    def validation(self) -> ValidationResult | None:
        return self._validator.result

    @property
    def is_valid(self) -> bool | None:
        """Result of the last validation pass (None before the first)."""
        result = self._validator.result
        return None if result is None else result.valid

    @property
    def errors(self) -> dict[str, list[str]]:
        result = self._validator.result
        if result is None:
            return {}
        return {key: list(messages) for key, messages in result.errors.items()}

    def validate(self) -> ValidationResult:
        """Check the declared rules against the inputs.

        Validated values are (re)assigned as instance attributes. The
        previous result is replaced, not merged.
        """
        result = self._validator.validate(self._inputs)
        for name, value in self._validator.values.items():
            setattr(self, name, value)
        if not result.valid:
            logger.debug("%s is missing inputs: %s", type(self).__name__, sorted(result.errors))
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def execute(self) -> None:
        """Do the work. Override in subclasses."""

    def compensate(self) -> None:
        """Undo the work done by :meth:`execute`. Override in subclasses."""

    def run(self) -> None:
        """Execute once, translating any failure into :class:`CommandFailure`."""
        if self._state is not CommandState.CREATED:
            msg = f"{type(self).__name__} has already run (state: {self._state})"
            raise CommandReuseError(msg)
        self._state = CommandState.RUNNING
        dispatcher = get_runtime().dispatcher

        try:
            self.execute()
        except Exception as exc:
            self._state = CommandState.FAILED
            failure = CommandFailure(cause=exc, command=self)
            logger.debug(
                "command.failed",
                extra={"command": type(self).__name__, "failure": failure.summary()},
            )
            dispatcher.dispatch("command_failed", command=self, failure=failure)
            raise failure from exc

        self._state = CommandState.SUCCEEDED
        logger.debug("command.succeeded", extra={"command": type(self).__name__})
        dispatcher.dispatch("command_executed", command=self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} state={self._state!s} valid={self.is_valid}>"

