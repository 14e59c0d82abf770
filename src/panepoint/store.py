"""Per-viewport, per-document position store."""

from __future__ import annotations

from typing import Any, Callable, Collection, Dict, Hashable, Iterator, Mapping

from .markers import Marker, MarkerFactory, PositionMarker

__all__ = ["PositionStore", "DocumentPredicate"]

DocumentPredicate = Callable[[Any], bool]


def _detached_marker(document: Any, offset: int) -> Marker:
    return PositionMarker(document, offset)


class PositionStore:
    """Maps ``viewport -> document -> marker``.

    Viewport identity is the outer key: one document shown in two viewports
    keeps two independent markers. At most one marker exists per pair.
    """

    __slots__ = ("_entries", "_marker_factory")

    def __init__(
        self,
        *,
        marker_factory: MarkerFactory | None = None,
        entries: Mapping[Hashable, Mapping[Hashable, Marker]] | None = None,
    ) -> None:
        self._marker_factory: MarkerFactory = marker_factory or _detached_marker
        self._entries: Dict[Hashable, Dict[Hashable, Marker]] = {}
        if entries:
            for viewport, documents in entries.items():
                if documents:
                    self._entries[viewport] = dict(documents)

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------
    def get(self, viewport: Hashable, document: Hashable) -> int | None:
        """Return the remembered offset for ``(viewport, document)``."""

        documents = self._entries.get(viewport)
        if documents is None:
            return None
        marker = documents.get(document)
        if marker is None:
            return None
        return marker.position

    def put(self, viewport: Hashable, document: Hashable, position: int) -> None:
        """Record ``position`` for the pair, reusing an existing marker."""

        documents = self._entries.get(viewport)
        marker = documents.get(document) if documents is not None else None
        if marker is not None:
            marker.move_to(position)
            return
        # A failing factory must leave no empty viewport entry behind.
        marker = self._marker_factory(document, position)
        if documents is None:
            documents = self._entries[viewport] = {}
        documents[document] = marker

    def prune(
        self,
        is_live: DocumentPredicate,
        *,
        live_viewports: Collection[Hashable] | None = None,
    ) -> "PositionStore":
        """Return a copy without dead documents and empty viewport entries."""

        pruned: Dict[Hashable, Dict[Hashable, Marker]] = {}
        for viewport, documents in self._entries.items():
            if live_viewports is not None and viewport not in live_viewports:
                continue
            kept = {document: marker for document, marker in documents.items() if is_live(document)}
            if kept:
                pruned[viewport] = kept
        return PositionStore(marker_factory=self._marker_factory, entries=pruned)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def forget_viewport(self, viewport: Hashable) -> bool:
        return self._entries.pop(viewport, None) is not None

    def viewports(self) -> tuple[Hashable, ...]:
        return tuple(self._entries)

    def documents(self, viewport: Hashable) -> tuple[Hashable, ...]:
        return tuple(self._entries.get(viewport, ()))

    def marker(self, viewport: Hashable, document: Hashable) -> Marker | None:
        return self._entries.get(viewport, {}).get(document)

    def as_dict(self) -> dict[Hashable, dict[Hashable, int]]:
        """Return a plain ``{viewport: {document: offset}}`` snapshot."""

        return {
            viewport: {document: marker.position for document, marker in documents.items()}
            for viewport, documents in self._entries.items()
        }

    def __len__(self) -> int:
        return sum(len(documents) for documents in self._entries.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        viewport, document = key
        return document in self._entries.get(viewport, {})

    def __iter__(self) -> Iterator[tuple[Hashable, Hashable]]:
        for viewport, documents in self._entries.items():
            for document in documents:
                yield viewport, document

    def __repr__(self) -> str:
        return f"PositionStore(viewports={len(self._entries)}, entries={len(self)})"
