"""Small structural interfaces shared by commands and invokers.

Anything exposing these methods can be driven like a command; concrete
classes do not need to inherit from them.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reversible.validation import ValidationResult


@runtime_checkable
class Runnable(Protocol):
    """Something with a single ``run()`` entry point."""

    def run(self) -> None: ...


@runtime_checkable
class Compensatable(Protocol):
    """Something whose effects can be undone by ``compensate()``."""

    def compensate(self) -> None: ...


@runtime_checkable
class Validatable(Protocol):
    """Something that validates its inputs and reports the outcome."""

    def validate(self) -> ValidationResult: ...

    @property
    def is_valid(self) -> bool | None: ...

    @property
    def errors(self) -> dict[str, list[str]]: ...
