"""Error taxonomy — typed failure wrappers for commands and invokers.

Three failure variants share one field shape ``{cause, command, invoker,
trace}`` and a :class:`FailureKind` tag, so callers can branch on
``err.kind`` and read whichever fields are populated:

- :class:`CommandFailure`: a single command's ``execute()`` raised.
- :class:`InvokerFailure`: an invoker's sequence stopped; rollback has run.
- :class:`InvokerRollbackFailure`: a ``compensate()`` raised during unwind.

INVARIANT: failure fields are immutable after construction.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Self

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from reversible.command import Command
    from reversible.invoker import Invoker


class ReversibleError(Exception):
    """Base class for every exception raised by reversible."""


class ConfigError(ReversibleError):
    """Configuration could not be loaded (e.g. malformed TOML)."""


class SequenceDeclarationError(ReversibleError):
    """An invoker sequence was declared ambiguously or too late."""


class CommandReuseError(ReversibleError):
    """A command or invoker instance was run more than once."""


class CompensationStateError(ReversibleError):
    """An invoker was asked to compensate when it has nothing left to undo."""


class FailureKind(StrEnum):
    """Structural tag distinguishing the three failure variants."""

    COMMAND = "command"
    INVOKER = "invoker"
    INVOKER_ROLLBACK = "invoker_rollback"


class FailureRecord(BaseModel):
    """Serialisable snapshot of a failure, for logs and reports."""

    model_config = {"frozen": True}

    kind: FailureKind
    message: str
    command: str | None = None
    invoker: str | None = None
    cause_type: str | None = None
    cause_message: str = ""
    trace: list[str] = Field(default_factory=list)


def format_trace(error: BaseException | None) -> tuple[str, ...]:
    """Return the formatted traceback lines of *error* (empty if none)."""
    if error is None:
        return ()
    return tuple(traceback.format_exception(type(error), error, error.__traceback__))


class BaseFailure(ReversibleError):
    """Shared shape of all command/invoker failures.

    Attributes:
        cause: The underlying exception, if any.
        command: The command instance that failed, if known.
        invoker: The invoker that owned the run, if any.
        trace: Formatted traceback of *cause* captured at wrap time.
    """

    kind: ClassVar[FailureKind]

    __slots__ = ("_cause", "_command", "_invoker", "_trace")

    def __init__(
        self,
        *,
        cause: BaseException | None = None,
        command: Command | None = None,
        invoker: Invoker | None = None,
        trace: tuple[str, ...] | list[str] | None = None,
    ) -> None:
        object.__setattr__(self, "_cause", cause)
        object.__setattr__(self, "_command", command)
        object.__setattr__(self, "_invoker", invoker)
        object.__setattr__(
            self, "_trace", tuple(trace) if trace is not None else format_trace(cause)
        )
        super().__init__(self._render())

    def __setattr__(self, name: str, value: Any) -> None:
        # Exception machinery writes dunder attributes (__cause__, __traceback__ ...).
        if name.startswith("__"):
            object.__setattr__(self, name, value)
            return
        msg = f"{type(self).__name__} is immutable; cannot set {name!r}"
        raise AttributeError(msg)

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    @property
    def command(self) -> Command | None:
        return self._command

    @property
    def invoker(self) -> Invoker | None:
        return self._invoker

    @property
    def trace(self) -> tuple[str, ...]:
        return self._trace

    @property
    def cause_type_name(self) -> str:
        return type(self._cause).__name__

    @property
    def cause_message(self) -> str:
        return "" if self._cause is None else str(self._cause)

    def _owner_name(self) -> str | None:
        if self._command is not None:
            return type(self._command).__name__
        if self._invoker is not None:
            return type(self._invoker).__name__
        return None

    def _render(self) -> str:
        detail = f"failed with {self.cause_type_name}: {self.cause_message}"
        owner = self._owner_name()
        return f"{owner} {detail}" if owner else detail

    def __str__(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._render()!r})"

    def to_record(self) -> FailureRecord:
        """Return a frozen, JSON-serialisable snapshot of this failure."""
        return FailureRecord(
            kind=self.kind,
            message=self._render(),
            command=type(self._command).__name__ if self._command is not None else None,
            invoker=type(self._invoker).__name__ if self._invoker is not None else None,
            cause_type=self.cause_type_name if self._cause is not None else None,
            cause_message=self.cause_message,
            trace=list(self._trace),
        )

    def summary(self) -> dict[str, Any]:
        """Return the record without its trace, as JSON-compatible values."""
        return self.to_record().model_dump(mode="json", exclude={"trace"})

    @classmethod
    def wrap(
        cls,
        error: BaseException,
        invoker: Invoker,
        *,
        command: Command | None = None,
    ) -> Self:
        """Build a failure owned by *invoker* from whatever stopped it.

        Unwraps an inner failure so ``cause`` is the original exception and
        ``command`` names the innermost failing step. *command* is used when
        the error itself does not name one.
        """
        if isinstance(error, BaseFailure):
            return cls(
                cause=error.cause,
                command=error.command if error.command is not None else command,
                invoker=invoker,
                trace=error.trace,
            )
        return cls(cause=error, command=command, invoker=invoker)


class CommandFailure(BaseFailure):
    """A command's ``execute()`` raised. No compensation was attempted."""

    kind = FailureKind.COMMAND


class InvokerFailure(BaseFailure):
    """An invoker's sequence failed and rollback completed."""

    kind = FailureKind.INVOKER


class InvokerRollbackFailure(BaseFailure):
    """A ``compensate()`` call raised; earlier steps were left as-is."""

    kind = FailureKind.INVOKER_ROLLBACK
