"""React to viewport configuration changes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Hashable

from .context import MemoryContext
from .policy import RestorePolicy
from .reclaim import collect_garbage

__all__ = ["ConfigurationWatcher"]

LOGGER = logging.getLogger(__name__)


class ConfigurationWatcher:
    """Restores positions for viewports whose document changed.

    Each invocation collects garbage first so stale markers are never applied,
    restores every viewport whose document differs from the previous
    assignment, then rebuilds that assignment from the live viewport set.
    Newly created viewports keep whatever offset the host gave them.
    """

    def __init__(self, policy: RestorePolicy | None = None) -> None:
        self._policy = policy or RestorePolicy()

    @property
    def policy(self) -> RestorePolicy:
        return self._policy

    def handle(self, context: MemoryContext) -> int:
        """Process one configuration change and return the number of restores."""

        host = context.host
        try:
            viewports = list(host.live_viewports(context.frame))
        except Exception:
            LOGGER.exception("Unable to enumerate viewports for frame %r", context.frame)
            return 0

        try:
            context.store = collect_garbage(
                context.store,
                host.is_live,
                live_viewports=frozenset(viewports) if context.prune_dead_viewports else None,
            )
        except Exception:
            LOGGER.exception("Garbage collection failed for frame %r", context.frame)

        assignment: Dict[Hashable, Any] = {}
        restored = 0
        for viewport in viewports:
            try:
                document = host.current_document(viewport)
            except Exception:
                LOGGER.debug("Skipping viewport %r during reconcile", viewport, exc_info=True)
                continue
            assignment[viewport] = document
            if viewport not in context.previous:
                continue
            if context.previous[viewport] != document and self._policy.restore(context, viewport, document):
                restored += 1

        context.previous = assignment
        LOGGER.debug(
            "Reconciled frame %r: %d viewport(s), %d restored, %d stored position(s)",
            context.frame,
            len(assignment),
            restored,
            len(context.store),
        )
        return restored

    __call__ = handle
