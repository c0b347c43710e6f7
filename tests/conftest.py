"""Shared pytest fixtures and test helpers for reversible tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

import pytest

from reversible.command import Command
from reversible.plugins import LifecycleDispatcher, PluginManager, hookimpl
from reversible.runtime import Runtime, _current_runtime, reset_runtime


@pytest.fixture(autouse=True)
def _default_runtime() -> Generator[None]:
    """Every test starts (and ends) on the default runtime."""
    reset_runtime()
    yield
    reset_runtime()


@pytest.fixture
def restore_logging() -> Generator[None]:
    """Restore the package logger after a test reconfigures logging."""
    pkg = logging.getLogger("reversible")
    original_handlers = pkg.handlers[:]
    original_level = pkg.level
    original_propagate = pkg.propagate
    yield
    pkg.handlers = original_handlers
    pkg.setLevel(original_level)
    pkg.propagate = original_propagate


# ---------------------------------------------------------------------------
# Recording plugin
# ---------------------------------------------------------------------------


class RecordingPlugin:
    """Plugin that records every lifecycle hook call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    @hookimpl
    def command_executed(self, command: Command) -> None:
        self.calls.append(("command_executed", {"command": command}))

    @hookimpl
    def command_failed(self, command: Command, failure: Any) -> None:
        self.calls.append(("command_failed", {"command": command, "failure": failure}))

    @hookimpl
    def command_compensated(self, command: Command, invoker: Any) -> None:
        self.calls.append(("command_compensated", {"command": command, "invoker": invoker}))

    @hookimpl
    def invoker_completed(self, invoker: Any, called: tuple[Command, ...]) -> None:
        self.calls.append(("invoker_completed", {"invoker": invoker, "called": called}))

    @hookimpl
    def invoker_rolled_back(self, invoker: Any, failure: Any) -> None:
        self.calls.append(("invoker_rolled_back", {"invoker": invoker, "failure": failure}))

    @hookimpl
    def invoker_rollback_failed(self, invoker: Any, failure: Any) -> None:
        self.calls.append(("invoker_rollback_failed", {"invoker": invoker, "failure": failure}))


@pytest.fixture
def recorder() -> RecordingPlugin:
    """A RecordingPlugin installed on the active runtime for this test."""
    plugin = RecordingPlugin()
    pm = PluginManager()
    pm.register_plugin(plugin, name="recorder")
    _current_runtime.set(Runtime(dispatcher=LifecycleDispatcher(pm)))
    return plugin


# ---------------------------------------------------------------------------
# Shared command helpers
# ---------------------------------------------------------------------------


class Journal:
    """Records execute/compensate calls across commands, in order."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str]] = []
        self.built: list[Command] = []

    def record(self, action: str, name: str) -> None:
        self.entries.append((action, name))

    def actions(self, action: str) -> list[str]:
        return [name for act, name in self.entries if act == action]


def make_step(
    name: str,
    journal: Journal,
    *,
    fail_execute: bool = False,
    fail_compensate: bool = False,
    base: type[Command] = Command,
) -> type[Command]:
    """Build a Command subclass that journals its calls and optionally fails."""

    def __init__(self: Command, *args: Any, **kwargs: Any) -> None:
        base.__init__(self, *args, **kwargs)
        journal.built.append(self)

    def execute(self: Command) -> None:
        journal.record("execute", name)
        if fail_execute:
            raise RuntimeError(f"{name} execute failed")

    def compensate(self: Command) -> None:
        journal.record("compensate", name)
        if fail_compensate:
            raise ValueError(f"{name} compensate failed")

    namespace = {"__init__": __init__, "execute": execute, "compensate": compensate}
    return type(name, (base,), namespace)


@pytest.fixture
def journal() -> Journal:
    return Journal()
