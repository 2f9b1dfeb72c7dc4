"""BaseService — foundation for all depctl services.

Every service receives a :class:`Workspace` at construction time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from depctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class AuditService(BaseService):
            def audit(self, records) -> ServiceResult:
                locator = self._workspace.new_locator()
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Call a plugin hook. No-op if plugins are not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        plugins = self._workspace.plugins
        if plugins is None:
            return
        try:
            plugins.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Plugin hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed")
