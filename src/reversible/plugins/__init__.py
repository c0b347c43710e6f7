"""Extension layer — lifecycle hooks via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from reversible.plugins.dispatch import LifecycleDispatcher
from reversible.plugins.hookspecs import hookimpl
from reversible.plugins.manager import PluginManager

__all__ = ["LifecycleDispatcher", "PluginManager", "hookimpl"]
