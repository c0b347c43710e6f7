"""Invoker — run commands in sequence, compensate them in reverse on failure.

An invoker is itself a command: it is constructed and validated the same
way and can be nested inside another invoker's sequence::

    class OpenAccount(Invoker, sequence=(ReserveNumber, CreateLedger, SendWelcome)):
        pass

    OpenAccount.call(customer_id=42)

Every command in the sequence is constructed with the invoker's own input
mapping (the same object, shared by reference) and run in declared order.
A command is appended to :attr:`Invoker.called` only after its ``run()``
returned. On the first failure the invoker compensates ``called`` in
reverse, then raises :class:`~reversible.errors.InvokerFailure`. If a
compensation raises, unwinding stops there and
:class:`~reversible.errors.InvokerRollbackFailure` is raised instead. The
same happens when a nested invoker raises one: the outer invoker stops
without undoing anything of its own.

Lifecycle: idle -> running -> completed | compensating -> failed | rollback_failed

A completed invoker can later be compensated: completed -> compensating -> compensated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias

from reversible.command import Command
from reversible.errors import (
    CommandReuseError,
    CompensationStateError,
    InvokerFailure,
    InvokerRollbackFailure,
    SequenceDeclarationError,
)
from reversible.runtime import get_runtime

logger = logging.getLogger(__name__)

SequenceEntry: TypeAlias = type[Command] | Command


class InvokerState(StrEnum):
    """Where an invoker is in its single run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPENSATING = "compensating"
    FAILED = "failed"
    ROLLBACK_FAILED = "rollback_failed"
    COMPENSATED = "compensated"


def normalize_sequence(entries: Iterable[Any]) -> tuple[SequenceEntry, ...]:
    """Flatten nested lists/tuples of commands and check each entry.

    Raises:
        TypeError: If an entry is neither a Command subclass nor a Command.
    """
    normalized: list[SequenceEntry] = []
    for entry in entries:
        if isinstance(entry, (list, tuple)):
            normalized.extend(normalize_sequence(entry))
        elif isinstance(entry, Command) or (
            isinstance(entry, type) and issubclass(entry, Command)
        ):
            normalized.append(entry)
        else:
            msg = f"Invoker sequences take Command types or instances, got {entry!r}"
            raise TypeError(msg)
    return tuple(normalized)


class _SequenceDeclaration:
    """``declare_sequence`` on the class sets the default for every instance;
    on an instance it sets an override for that instance only.
    """

    def __get__(
        self, instance: Invoker | None, owner: type[Invoker]
    ) -> Callable[..., None]:
        if instance is None:
            return owner._declare_default_sequence
        return instance._declare_instance_sequence


class Invoker(Command):
    """Base class for ordered, compensating command sequences.

    Class keywords:
        sequence: The default command sequence. Equivalent to calling
            ``declare_sequence`` on the class after its body.
        required: As for :class:`~reversible.command.Command`.
    """

    _default_sequence: ClassVar[tuple[SequenceEntry, ...]] = ()

    declare_sequence = _SequenceDeclaration()

    def __init_subclass__(
        cls,
        *,
        sequence: Iterable[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if sequence is not None:
            cls._declare_default_sequence(*sequence)

    @classmethod
    def _declare_default_sequence(cls, *command_types: Any) -> None:
        cls._default_sequence = normalize_sequence(command_types)

    def _declare_instance_sequence(self, *command_types: Any) -> None:
        cls = type(self)
        if cls._default_sequence:
            msg = (
                f"{cls.__name__} already declares a sequence; "
                "an instance may not declare its own"
            )
            raise SequenceDeclarationError(msg)
        if self._sequence is not None:
            msg = f"This {cls.__name__} instance already declared its sequence"
            raise SequenceDeclarationError(msg)
        if self._state is not InvokerState.IDLE:
            msg = f"{cls.__name__} has already started (state: {self._state})"
            raise SequenceDeclarationError(msg)
        self._sequence = normalize_sequence(command_types)

    def __init__(self, inputs: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        self._sequence: tuple[SequenceEntry, ...] | None = None
        self._called: list[Command] = []
        super().__init__(inputs, **kwargs)
        self._state = InvokerState.IDLE

    @property
    def sequence(self) -> tuple[SequenceEntry, ...]:
        """The sequence this instance will run.

        Raises:
            SequenceDeclarationError: If both the class and this instance
                declared a sequence.
        """
        default = type(self)._default_sequence
        if self._sequence is None:
            return default
        if default:
            msg = f"{type(self).__name__} has both a class and an instance sequence"
            raise SequenceDeclarationError(msg)
        return self._sequence

    @property
    def called(self) -> tuple[Command, ...]:
        """Commands that completed successfully so far, in completion order."""
        return tuple(self._called)

    def _build(self, entry: SequenceEntry) -> Command:
        if isinstance(entry, Command):
            return entry
        return entry(self._inputs)

    def run(self) -> None:
        """Run the sequence once; compensate and raise on the first failure."""
        if self._state is not InvokerState.IDLE:
            msg = f"{type(self).__name__} has already run (state: {self._state})"
            raise CommandReuseError(msg)
        sequence = self.sequence
        self._state = InvokerState.RUNNING
        runtime = get_runtime()
        name = type(self).__name__

        if runtime.log_inputs:
            logger.debug("invoker.start", extra={"invoker": name, "inputs": dict(self._inputs)})
        else:
            logger.debug("invoker.start", extra={"invoker": name, "steps": len(sequence)})

        command: Command | None = None
        try:
            for entry in sequence:
                command = None
                command = self._build(entry)
                logger.debug(
                    "invoker.step",
                    extra={"invoker": name, "command": type(command).__name__},
                )
                command.run()
                self._called.append(command)
        except InvokerRollbackFailure as exc:
            # A nested invoker could not unwind; nothing above it may be undone.
            failure = self._rollback_failed(exc, command)
            raise failure from exc
        except Exception as exc:
            failure = InvokerFailure.wrap(exc, self, command=command)
            self._state = InvokerState.COMPENSATING
            logger.info(
                "invoker.rollback",
                extra={
                    "invoker": name,
                    "failure": failure.summary(),
                    "compensating": [type(c).__name__ for c in reversed(self._called)],
                },
            )
            self._rollback()
            self._state = InvokerState.FAILED
            runtime.dispatcher.dispatch("invoker_rolled_back", invoker=self, failure=failure)
            raise failure from exc

        self._state = InvokerState.COMPLETED
        logger.debug("invoker.completed", extra={"invoker": name, "steps": len(self._called)})
        runtime.dispatcher.dispatch("invoker_completed", invoker=self, called=self.called)

    def compensate(self) -> None:
        """Undo every completed command, most recent first.

        Lets a finished invoker be unwound as one step of an outer invoker.
        Only a completed invoker can be compensated, and only once; a failed
        run has already unwound itself.

        Raises:
            CompensationStateError: If the invoker is not in the completed state.
        """
        if self._state is not InvokerState.COMPLETED:
            msg = f"{type(self).__name__} cannot compensate (state: {self._state})"
            raise CompensationStateError(msg)
        self._state = InvokerState.COMPENSATING
        self._rollback()
        self._state = InvokerState.COMPENSATED

    def _rollback(self) -> None:
        dispatcher = get_runtime().dispatcher
        for command in reversed(self._called):
            try:
                command.compensate()
            except Exception as exc:
                failure = self._rollback_failed(exc, command)
                raise failure from exc
            dispatcher.dispatch("command_compensated", command=command, invoker=self)

    def _rollback_failed(
        self, error: BaseException, command: Command | None
    ) -> InvokerRollbackFailure:
        self._state = InvokerState.ROLLBACK_FAILED
        failure = InvokerRollbackFailure.wrap(error, self, command=command)
        logger.warning(
            "invoker.rollback_failed",
            extra={"invoker": type(self).__name__, "failure": failure.summary()},
        )
        get_runtime().dispatcher.dispatch("invoker_rollback_failed", invoker=self, failure=failure)
        return failure
