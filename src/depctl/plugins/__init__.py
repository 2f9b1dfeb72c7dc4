"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from ``.depctl/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from depctl.plugins.hookspecs import hookimpl
from depctl.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
