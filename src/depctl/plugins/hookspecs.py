"""Pluggy hook specifications for depctl lifecycle events.

Hooks fire synchronously after each top-level operation completes.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("depctl")
hookimpl = pluggy.HookimplMarker("depctl")


class DepctlHookSpec:
    """Hook specifications for the depctl plugin system."""

    @hookspec
    def post_resolve(
        self,
        packages: list[dict[str, Any]],
        errors: list[str],
        warnings: list[str],
    ) -> None:
        """Called after a resolution session and its validation pass."""

    @hookspec
    def post_materialize(
        self,
        succeeded: list[str],
        failed: list[str],
        files: int,
        bytes_copied: int,
    ) -> None:
        """Called after packages are copied into the output tree."""
