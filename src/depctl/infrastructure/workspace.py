"""Workspace — the single dependency injected into every service.

Owns the project root, the resolved settings, and the plugin manager.
Resolution state is never kept here: each session builds its own
:class:`~depctl.infrastructure.locator.PackageLocator`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from depctl.infrastructure.locator import PackageLocator
from depctl.infrastructure.metadata import PackageMetadataLoader

if TYPE_CHECKING:
    from depctl.config.settings import DepSettings
    from depctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

LOCAL_PLUGIN_DIR = Path(".depctl") / "plugins"


class Workspace:
    """Project root plus configuration, constructed once at CLI startup."""

    def __init__(self, settings: DepSettings) -> None:
        self._settings = settings
        self._plugins: PluginManager | None = None

    @property
    def root(self) -> Path:
        return self._settings.project_root

    @property
    def settings(self) -> DepSettings:
        return self._settings

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager (None until :meth:`init_plugins`)."""
        return self._plugins

    @property
    def output_root(self) -> Path:
        out = Path(self._settings.materialize.output_dir)
        return out if out.is_absolute() else self.root / out

    def new_locator(self) -> PackageLocator:
        """A fresh locator for one resolution session."""
        return PackageLocator(self.root, self._settings.effective_resolve)

    def new_loader(self) -> PackageMetadataLoader:
        resolve = self._settings.resolve
        return PackageMetadataLoader(resolve.descriptor, resolve.default_main)

    def init_plugins(self) -> None:
        """Discover entry-point and local plugins. No-op when disabled."""
        if not self._settings.plugins.enabled:
            return
        from depctl.plugins.manager import PluginManager

        pm = PluginManager()
        names = pm.discover_and_load(local_dir=self.root / LOCAL_PLUGIN_DIR)
        if names:
            logger.debug("Loaded plugins: %s", ", ".join(names))
        self._plugins = pm

    def attach_plugins(self, manager: PluginManager) -> None:
        """Use an already-configured plugin manager."""
        self._plugins = manager
