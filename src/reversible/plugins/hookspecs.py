"""Pluggy hook specifications for command and invoker lifecycle events.

Hooks are observers: they are called synchronously after the event they
describe and cannot change the outcome of a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from reversible.command import Command
    from reversible.errors import (
        CommandFailure,
        InvokerFailure,
        InvokerRollbackFailure,
    )
    from reversible.invoker import Invoker

PROJECT_NAME = "reversible"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class ReversibleHookSpec:
    """Hook specifications for the reversible plugin system."""

    @hookspec
    def command_executed(self, command: Command) -> None:
        """Called after a command's ``execute()`` returned."""

    @hookspec
    def command_failed(self, command: Command, failure: CommandFailure) -> None:
        """Called after a command's ``execute()`` raised."""

    @hookspec
    def command_compensated(self, command: Command, invoker: Invoker) -> None:
        """Called after an invoker compensated one of its commands."""

    @hookspec
    def invoker_completed(self, invoker: Invoker, called: tuple[Command, ...]) -> None:
        """Called after every command in an invoker's sequence succeeded."""

    @hookspec
    def invoker_rolled_back(self, invoker: Invoker, failure: InvokerFailure) -> None:
        """Called after a failed sequence was fully compensated."""

    @hookspec
    def invoker_rollback_failed(
        self,
        invoker: Invoker,
        failure: InvokerRollbackFailure,
    ) -> None:
        """Called when a compensation step raised and unwinding stopped."""
