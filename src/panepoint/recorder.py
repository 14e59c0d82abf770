"""Snapshot every visible viewport's position after each command."""

from __future__ import annotations

import logging

from .context import MemoryContext

__all__ = ["PositionRecorder"]

LOGGER = logging.getLogger(__name__)


class PositionRecorder:
    """Writes the current offset of every live viewport into the store.

    All visible viewports are recorded, not just the selected one, since a
    background viewport can scroll programmatically between configuration
    changes.
    """

    def record(self, context: MemoryContext) -> int:
        """Record positions for ``context``'s frame and return how many were stored."""

        host = context.host
        try:
            viewports = list(host.live_viewports(context.frame))
        except Exception:
            LOGGER.exception("Unable to enumerate viewports for frame %r", context.frame)
            return 0

        recorded = 0
        for viewport in viewports:
            try:
                document = host.current_document(viewport)
                offset = host.current_offset(viewport)
                context.store.put(viewport, document, offset)
            except Exception:
                LOGGER.debug("Skipping viewport %r while recording", viewport, exc_info=True)
                continue
            recorded += 1
        return recorded

    __call__ = record
