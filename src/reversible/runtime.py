"""Runtime — the settings and plugin hooks commands see while running.

The active runtime lives in a ContextVar. Until :func:`configure` is
called, commands run against a default runtime with no plugins and
logging left untouched, so importing reversible never has side effects.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from dataclasses import dataclass, field

from reversible.config.logging import configure_logging
from reversible.config.settings import ReversibleSettings
from reversible.plugins.dispatch import LifecycleDispatcher
from reversible.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Runtime:
    """Settings plus the dispatcher used for lifecycle hooks."""

    settings: ReversibleSettings | None = None
    dispatcher: LifecycleDispatcher = field(default_factory=LifecycleDispatcher)

    @property
    def plugin_manager(self) -> PluginManager | None:
        return self.dispatcher.plugin_manager

    @property
    def log_inputs(self) -> bool:
        return self.settings is not None and self.settings.invoker.log_inputs


_DEFAULT_RUNTIME = Runtime()
_current_runtime: ContextVar[Runtime] = ContextVar("_current_runtime", default=_DEFAULT_RUNTIME)


def configure(
    settings: ReversibleSettings | None = None,
    *,
    plugin_manager: PluginManager | None = None,
) -> Runtime:
    """Apply *settings* and install the resulting runtime.

    Routes the package logger, then builds the plugin manager: an explicit
    *plugin_manager* is used as-is, otherwise entry-point plugins are
    loaded when ``settings.plugins.enabled`` is true.
    """
    if settings is None:
        settings = ReversibleSettings.load()

    configure_logging(settings)

    pm = plugin_manager
    if pm is None and settings.plugins.enabled:
        pm = PluginManager.from_config(settings.plugins)

    runtime = Runtime(settings=settings, dispatcher=LifecycleDispatcher(pm))
    _current_runtime.set(runtime)
    logger.debug(
        "runtime.configured",
        extra={
            "config_path": str(settings.config_path) if settings.config_path else None,
            "plugins": pm.list_plugin_names() if pm is not None else [],
        },
    )
    return runtime


def get_runtime() -> Runtime:
    """Return the active runtime (the default one if never configured)."""
    return _current_runtime.get()


def reset_runtime() -> None:
    """Restore the default runtime."""
    _current_runtime.set(_DEFAULT_RUNTIME)
