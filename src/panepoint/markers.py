"""Self-adjusting position markers for documents without native handles.

A :class:`PositionMarker` pairs a document with an offset. Hosts that do not
expose a stable position primitive keep a :class:`MarkerTracker` per document
and report every insertion/deletion to it so live markers keep pointing at the
same logical location.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Iterator, Protocol
from weakref import WeakSet

__all__ = ["Marker", "MarkerFactory", "MarkerTracker", "PositionMarker"]


class Marker(Protocol):
    """Structural type implemented by every marker the store can hold."""

    @property
    def document(self) -> Hashable:  # pragma: no cover - protocol
        ...

    @property
    def position(self) -> int:  # pragma: no cover - protocol
        ...

    def move_to(self, offset: int) -> None:  # pragma: no cover - protocol
        ...


MarkerFactory = Callable[[Any, int], Marker]


class PositionMarker:
    """Offset into a document that follows edits reported by its tracker."""

    __slots__ = ("_document", "_position", "_limit", "__weakref__")

    def __init__(
        self,
        document: Hashable,
        position: int,
        *,
        limit: Callable[[], int] | None = None,
    ) -> None:
        self._document = document
        self._limit = limit
        self._position = 0
        self.move_to(position)

    def __repr__(self) -> str:
        return f"PositionMarker(document={self._document!r}, position={self._position})"

    @property
    def document(self) -> Hashable:
        return self._document

    @property
    def position(self) -> int:
        return self._position

    def move_to(self, offset: int) -> None:
        """Reposition the marker in place, clamped to the document bounds."""

        offset = max(0, int(offset))
        if self._limit is not None:
            offset = min(offset, max(0, int(self._limit())))
        self._position = offset

    def shift_for_insert(self, start: int, length: int) -> None:
        # Text typed exactly at the marker does not push it forward.
        if length > 0 and start < self._position:
            self._position += length

    def shift_for_delete(self, start: int, end: int) -> None:
        if end <= start or start >= self._position:
            return
        if end <= self._position:
            self._position -= end - start
        else:
            self._position = start


class MarkerTracker:
    """Weak registry of markers belonging to one document."""

    def __init__(self, document: Hashable, *, length: Callable[[], int] | None = None) -> None:
        self._document = document
        self._length = length
        self._markers: WeakSet[PositionMarker] = WeakSet()

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[PositionMarker]:
        return iter(list(self._markers))

    def create(self, offset: int) -> PositionMarker:
        """Allocate a marker that follows this document's edits."""

        marker = PositionMarker(self._document, offset, limit=self._length)
        self._markers.add(marker)
        return marker

    def adopt(self, marker: PositionMarker) -> PositionMarker:
        if marker.document is not self._document:
            raise ValueError("Marker belongs to a different document")
        self._markers.add(marker)
        return marker

    def inserted(self, start: int, length: int) -> None:
        for marker in self:
            marker.shift_for_insert(start, length)

    def deleted(self, start: int, end: int) -> None:
        for marker in self:
            marker.shift_for_delete(start, end)
