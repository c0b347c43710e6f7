"""Tests for the failure taxonomy."""

from __future__ import annotations

import json

import pytest

from reversible.command import Command
from reversible.errors import (
    BaseFailure,
    CommandFailure,
    FailureKind,
    FailureRecord,
    InvokerFailure,
    InvokerRollbackFailure,
    ReversibleError,
)
from reversible.invoker import Invoker


class StandardError(Exception):
    """Stand-in for an arbitrary application error."""


class SampleCommand(Command):
    pass


class SampleInvoker(Invoker):
    pass


def _raised(error: Exception) -> Exception:
    """Return *error* after raising it, so it carries a traceback."""
    try:
        raise error
    except Exception as exc:
        return exc


class TestStringForm:
    def test_contains_cause_class_and_message(self) -> None:
        failure = CommandFailure(cause=StandardError("test message"), command=SampleCommand())
        assert "StandardError: test message" in str(failure)

    def test_contains_command_class(self) -> None:
        failure = CommandFailure(cause=StandardError("test message"), command=SampleCommand())
        assert str(failure) == "SampleCommand failed with StandardError: test message"

    def test_falls_back_to_invoker_name(self) -> None:
        failure = InvokerFailure(cause=KeyError("k"), invoker=SampleInvoker())
        assert str(failure).startswith("SampleInvoker failed with KeyError")

    def test_without_command_or_invoker(self) -> None:
        failure = CommandFailure(cause=ValueError("bad"))
        assert str(failure) == "failed with ValueError: bad"

    def test_without_cause(self) -> None:
        failure = CommandFailure(command=SampleCommand())
        assert str(failure) == "SampleCommand failed with NoneType: "

    def test_repr(self) -> None:
        failure = CommandFailure(cause=ValueError("bad"), command=SampleCommand())
        assert repr(failure).startswith("CommandFailure(")


class TestFieldShape:
    @pytest.mark.parametrize(
        "failure_cls",
        [CommandFailure, InvokerFailure, InvokerRollbackFailure],
        ids=lambda c: c.__name__,
    )
    def test_shared_fields(self, failure_cls: type[BaseFailure]) -> None:
        cause = _raised(ValueError("boom"))
        command = SampleCommand()
        invoker = SampleInvoker()
        failure = failure_cls(cause=cause, command=command, invoker=invoker)
        assert failure.cause is cause
        assert failure.command is command
        assert failure.invoker is invoker
        assert any("ValueError: boom" in line for line in failure.trace)
        assert isinstance(failure, ReversibleError)

    def test_kinds_are_distinct(self) -> None:
        assert CommandFailure.kind is FailureKind.COMMAND
        assert InvokerFailure.kind is FailureKind.INVOKER
        assert InvokerRollbackFailure.kind is FailureKind.INVOKER_ROLLBACK

    def test_trace_captured_from_cause(self) -> None:
        cause = _raised(RuntimeError("traced"))
        failure = CommandFailure(cause=cause)
        assert failure.trace[0].startswith("Traceback")
        assert "_raised" in "".join(failure.trace)

    def test_explicit_trace_wins(self) -> None:
        failure = CommandFailure(cause=ValueError("x"), trace=["line one\n"])
        assert failure.trace == ("line one\n",)

    def test_no_cause_no_trace(self) -> None:
        assert CommandFailure().trace == ()

    def test_fields_are_immutable(self) -> None:
        failure = CommandFailure(cause=ValueError("x"))
        with pytest.raises(AttributeError):
            failure.command = SampleCommand()  # type: ignore[misc]
        with pytest.raises(AttributeError):
            failure.cause = None  # type: ignore[misc]

    def test_can_be_raised_from_cause(self) -> None:
        cause = ValueError("x")
        with pytest.raises(CommandFailure) as exc_info:
            raise CommandFailure(cause=cause) from cause
        assert exc_info.value.__cause__ is cause


class TestFailureWrap:
    def test_unwraps_command_failure(self) -> None:
        cause = _raised(ValueError("inner"))
        command = SampleCommand()
        invoker = SampleInvoker()
        inner = CommandFailure(cause=cause, command=command)

        failure = InvokerFailure.wrap(inner, invoker)

        assert failure.cause is cause
        assert failure.command is command
        assert failure.invoker is invoker
        assert failure.trace == inner.trace

    def test_plain_error_has_no_command(self) -> None:
        invoker = SampleInvoker()
        cause = TypeError("construction failed")
        failure = InvokerFailure.wrap(cause, invoker)
        assert failure.cause is cause
        assert failure.command is None
        assert failure.invoker is invoker

    def test_fallback_command_for_plain_error(self) -> None:
        invoker = SampleInvoker()
        command = SampleCommand()
        failure = InvokerFailure.wrap(TypeError("x"), invoker, command=command)
        assert failure.command is command

    def test_rollback_failure_unwraps_inner_rollback_failure(self) -> None:
        cause = _raised(ValueError("undo failed"))
        command = SampleCommand()
        inner = InvokerRollbackFailure(cause=cause, command=command, invoker=SampleInvoker())
        outer_invoker = SampleInvoker()

        failure = InvokerRollbackFailure.wrap(inner, outer_invoker)

        assert type(failure) is InvokerRollbackFailure
        assert failure.kind is FailureKind.INVOKER_ROLLBACK
        assert failure.cause is cause
        assert failure.command is command
        assert failure.invoker is outer_invoker


class TestFailureRecord:
    def test_record_fields(self) -> None:
        failure = InvokerRollbackFailure(
            cause=_raised(ValueError("undo failed")),
            command=SampleCommand(),
            invoker=SampleInvoker(),
        )
        record = failure.to_record()
        assert isinstance(record, FailureRecord)
        assert record.kind is FailureKind.INVOKER_ROLLBACK
        assert record.command == "SampleCommand"
        assert record.invoker == "SampleInvoker"
        assert record.cause_type == "ValueError"
        assert record.cause_message == "undo failed"
        assert record.message == "SampleCommand failed with ValueError: undo failed"
        assert record.trace

    def test_json_serialization(self) -> None:
        failure = CommandFailure(cause=ValueError("x"), command=SampleCommand())
        parsed = json.loads(failure.to_record().model_dump_json())
        assert parsed["kind"] == "command"
        assert parsed["invoker"] is None

    def test_summary_omits_trace(self) -> None:
        failure = CommandFailure(cause=_raised(ValueError("x")))
        summary = failure.summary()
        assert "trace" not in summary
        assert summary["cause_type"] == "ValueError"

    def test_record_frozen(self) -> None:
        record = CommandFailure(cause=ValueError("x")).to_record()
        with pytest.raises(Exception):
            record.kind = FailureKind.INVOKER  # type: ignore[misc]
