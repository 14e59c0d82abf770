"""Shared test helpers and stub classes.

Import from here instead of redefining host doubles in individual test files.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, List, Sequence

from panepoint.markers import PositionMarker


class StubHost:
    """Dictionary-backed :class:`~panepoint.host.ViewportHost` double.

    Viewports and documents are plain strings. ``set_calls`` records every
    ``set_offset`` invocation so tests can assert on restores.

    Example:
        host = StubHost()
        host.show("frame", "left", "notes.md", offset=5)
    """

    def __init__(self) -> None:
        self.layout: Dict[Hashable, List[str]] = {}
        self.assignment: Dict[str, str] = {}
        self.offsets: Dict[str, int] = {}
        self.dead: set[str] = set()
        self.excluded: set[str] = set()
        self.broken: set[str] = set()
        self.set_calls: list[tuple[str, int]] = []

    def show(self, frame: Hashable, viewport: str, document: str, *, offset: int = 0) -> None:
        viewports = self.layout.setdefault(frame, [])
        if viewport not in viewports:
            viewports.append(viewport)
        self.assignment[viewport] = document
        self.offsets[viewport] = offset

    def remove(self, frame: Hashable, viewport: str) -> None:
        self.layout[frame].remove(viewport)
        self.assignment.pop(viewport, None)
        self.offsets.pop(viewport, None)

    # ViewportHost surface --------------------------------------------------
    def live_viewports(self, frame: Hashable) -> Sequence[str]:
        return tuple(self.layout.get(frame, ()))

    def current_document(self, viewport: str) -> str:
        if viewport in self.broken:
            raise RuntimeError(f"viewport {viewport} is in a bad state")
        return self.assignment[viewport]

    def current_offset(self, viewport: str) -> int:
        return self.offsets[viewport]

    def set_offset(self, viewport: str, offset: int) -> None:
        if viewport in self.broken:
            raise RuntimeError(f"viewport {viewport} is in a bad state")
        self.set_calls.append((viewport, offset))
        self.offsets[viewport] = offset

    def is_live(self, document: Any) -> bool:
        return document not in self.dead

    def is_excluded_kind(self, document: Any) -> bool:
        return document in self.excluded

    def create_marker(self, document: Any, offset: int) -> PositionMarker:
        return PositionMarker(document, offset)
