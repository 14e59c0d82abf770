"""Decide whether a remembered position applies and apply it."""

from __future__ import annotations

import logging
from typing import Any, Hashable

from .context import MemoryContext
from .events import PositionRestored

__all__ = ["RestorePolicy"]

LOGGER = logging.getLogger(__name__)


class RestorePolicy:
    """Moves a viewport's cursor to its remembered offset in a document.

    Runs inside host hooks, so it never raises: a missing entry, an excluded
    document or a host failure all mean "nothing to restore" and the host's
    own positioning stands.
    """

    def restore(self, context: MemoryContext, viewport: Hashable, document: Any) -> bool:
        """Return ``True`` when a remembered offset was handed to the host."""

        host = context.host
        try:
            offset = context.store.get(viewport, document)
            if offset is None:
                return False
            if host.is_excluded_kind(document):
                LOGGER.debug("Skipping restore into excluded document %r", document)
                return False
            host.set_offset(viewport, offset)
        except Exception:
            LOGGER.debug("Restore failed for %r in %r", document, viewport, exc_info=True)
            return False

        LOGGER.debug("Restored %r to offset %d in %r", viewport, offset, document)
        if context.bus is not None and context.publish_restore_events:
            context.bus.publish(
                PositionRestored(frame=context.frame, viewport=viewport, document=document, offset=offset)
            )
        return True

    __call__ = restore
