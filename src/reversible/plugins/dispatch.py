"""Synchronous, failure-isolated dispatch of lifecycle hooks.

INVARIANT: Plugin failures are warnings, never errors. A hook that raises
is logged and skipped; it can never change the outcome of a command run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from reversible.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class LifecycleDispatcher:
    """Calls lifecycle hooks on a :class:`PluginManager`, if one is set.

    Parameters:
        plugin_manager: Manager whose hook relay is called. ``None`` makes
            every dispatch a no-op.
    """

    def __init__(self, plugin_manager: PluginManager | None = None) -> None:
        self._pm = plugin_manager

    @property
    def plugin_manager(self) -> PluginManager | None:
        return self._pm

    def dispatch(self, hook_name: str, **payload: Any) -> bool:
        """Call *hook_name* with *payload*.

        Returns True if every implementation ran cleanly, False if the
        hook is unknown or an implementation raised.
        """
        if self._pm is None:
            return True

        hook = getattr(self._pm.hook, hook_name, None)
        if hook is None:
            logger.warning("Unknown lifecycle hook: %s", hook_name)
            return False

        try:
            hook(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return False
        return True
