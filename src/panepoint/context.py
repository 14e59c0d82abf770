"""Per-frame state owned by the position memory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable

from .events import EventBus
from .host import ViewportHost
from .store import PositionStore

__all__ = ["MemoryContext"]


@dataclass(slots=True)
class MemoryContext:
    """Store and previous viewport assignment for one display context.

    Contexts of different frames never share state. ``previous`` maps each
    viewport to the document it showed at the last configuration change.
    """

    frame: Hashable
    host: ViewportHost
    store: PositionStore = field(default_factory=PositionStore)
    previous: Dict[Hashable, Any] = field(default_factory=dict)
    bus: EventBus | None = None
    prune_dead_viewports: bool = True
    publish_restore_events: bool = True

    @classmethod
    def create(
        cls,
        frame: Hashable,
        host: ViewportHost,
        *,
        bus: EventBus | None = None,
        prune_dead_viewports: bool = True,
        publish_restore_events: bool = True,
    ) -> "MemoryContext":
        """Build a context whose store allocates markers through ``host``."""

        return cls(
            frame=frame,
            host=host,
            store=PositionStore(marker_factory=host.create_marker),
            bus=bus,
            prune_dead_viewports=prune_dead_viewports,
            publish_restore_events=publish_restore_events,
        )

    def reset(self) -> None:
        """Drop every remembered position and the previous assignment."""

        self.previous.clear()
        self.store = PositionStore(marker_factory=self.host.create_marker)
