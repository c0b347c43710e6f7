"""Plugin registry for lifecycle observers.

Observers arrive two ways: installed packages advertise them under the
entry-point group named in :class:`~reversible.config.models.PluginsConfig`,
or application code registers an instance directly.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from reversible.config.models import PluginsConfig
from reversible.plugins.hookspecs import PROJECT_NAME, ReversibleHookSpec

logger = logging.getLogger(__name__)


class PluginManager:
    """Holds the registered observers and the hook relay that calls them."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ReversibleHookSpec)

    @classmethod
    def from_config(cls, config: PluginsConfig) -> PluginManager:
        """Return a manager with the entry-point plugins *config* allows."""
        manager = cls()
        if config.enabled:
            manager.load_entry_points(config)
        return manager

    def load_entry_points(self, config: PluginsConfig) -> list[str]:
        """Load the observers advertised under ``config.entry_point_group``.

        Names in ``config.disabled`` are blocked first and never load. An
        entry point may name a plugin class; it is replaced by an instance
        so its hooks have a bound ``self``.

        Returns:
            Names of the plugins registered after loading.
        """
        for name in config.disabled:
            self._pm.set_blocked(name)
        count = self._pm.load_setuptools_entrypoints(config.entry_point_group)
        for plugin in [p for p in self._pm.get_plugins() if inspect.isclass(p)]:
            self._instantiate(plugin)
        names = self.list_plugin_names()
        logger.debug(
            "Loaded %d entry point(s) from %s; registered: %s",
            count,
            config.entry_point_group,
            ", ".join(names) or "(none)",
        )
        return names

    def _instantiate(self, plugin_cls: type) -> None:
        if not any(self._pm.parse_hookimpl_opts(plugin_cls, attr) for attr in dir(plugin_cls)):
            return
        name = self._pm.get_name(plugin_cls) or plugin_cls.__name__
        self._pm.unregister(plugin_cls)
        try:
            instance = plugin_cls()
        except Exception:
            logger.warning("Could not instantiate plugin %s; skipped", name, exc_info=True)
            return
        self._pm.register(instance, name=name)

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register an observer instance (named after its class by default)."""
        self._pm.register(plugin, name=name or type(plugin).__name__)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def is_blocked(self, name: str) -> bool:
        return self._pm.is_blocked(name)
