"""reversible — reversible commands with ordered, compensating invokers."""

from reversible.command import Command, CommandState
from reversible.errors import (
    BaseFailure,
    CommandFailure,
    CommandReuseError,
    CompensationStateError,
    ConfigError,
    FailureKind,
    FailureRecord,
    InvokerFailure,
    InvokerRollbackFailure,
    ReversibleError,
    SequenceDeclarationError,
)
from reversible.invoker import Invoker, InvokerState
from reversible.runtime import configure, get_runtime, reset_runtime
from reversible.validation import ATTRIBUTE_MISSING, PresenceRule, ValidationResult, Validator

__all__ = [
    "ATTRIBUTE_MISSING",
    "BaseFailure",
    "Command",
    "CommandFailure",
    "CommandReuseError",
    "CompensationStateError",
    "CommandState",
    "ConfigError",
    "FailureKind",
    "FailureRecord",
    "Invoker",
    "InvokerFailure",
    "InvokerRollbackFailure",
    "InvokerState",
    "PresenceRule",
    "ReversibleError",
    "SequenceDeclarationError",
    "ValidationResult",
    "Validator",
    "configure",
    "get_runtime",
    "reset_runtime",
]
