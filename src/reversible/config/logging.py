"""Log output for the ``reversible`` logger, rendered by structlog.

Library modules log through stdlib ``logging.getLogger(__name__)`` with
``extra=`` fields. :func:`configure_logging` attaches one handler to the
package logger whose formatter runs those records through structlog:

- Human (default): console-formatted output
- JSON (``log_json``): one JSON object per line

Only the ``reversible`` logger is touched; the root logger, its handlers and
any structlog configuration owned by the application are left alone.
Nothing is configured on import; :func:`reversible.runtime.configure` calls
this with the active settings.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from reversible.config.settings import ReversibleSettings

LOGGER_NAME = "reversible"


class ReversibleHandler(logging.StreamHandler):
    """Stream handler installed by :func:`configure_logging`.

    A distinct type so reconfiguring replaces it instead of stacking copies.
    """


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def build_formatter(*, log_json: bool, colors: bool = False) -> logging.Formatter:
    """Return a formatter that renders stdlib records with structlog."""
    if log_json:
        tail: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        tail = [structlog.dev.ConsoleRenderer(colors=colors)]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *tail],
    )


def configure_logging(
    settings: ReversibleSettings,
    *,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Route the ``reversible`` logger to *stream* as *settings* describe.

    ``settings.verbose`` lowers the level from WARNING to DEBUG and
    ``settings.log_json`` picks the JSON renderer. Records stop at the package
    logger, so an application's root handlers do not print them twice.

    Args:
        settings: Active settings.
        stream: Output stream; defaults to ``sys.stderr``.

    Returns:
        The installed handler.
    """
    out = stream if stream is not None else sys.stderr
    handler = ReversibleHandler(out)
    handler.setFormatter(
        build_formatter(log_json=settings.log_json, colors=not settings.log_json and out.isatty())
    )

    package_logger = logging.getLogger(LOGGER_NAME)
    for existing in [h for h in package_logger.handlers if isinstance(h, ReversibleHandler)]:
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if settings.verbose else logging.WARNING)
    package_logger.propagate = False
    return handler
