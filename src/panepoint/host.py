"""Collaborator surface a host editor implements for position memory."""

from __future__ import annotations

from typing import Any, Hashable, Protocol, Sequence, runtime_checkable

from .markers import Marker

__all__ = ["DIRECTORY_LISTING_KINDS", "ViewportHost"]

# Document kinds whose content is regenerated, making stored offsets meaningless.
DIRECTORY_LISTING_KINDS: frozenset[str] = frozenset({"directory-listing"})


@runtime_checkable
class ViewportHost(Protocol):
    """Queries and commands the position memory issues against its host.

    Viewports and documents are opaque hashable handles owned by the host.
    Frames scope viewport enumeration to one top-level display context.
    """

    def live_viewports(self, frame: Hashable) -> Sequence[Hashable]:  # pragma: no cover - protocol
        ...

    def current_document(self, viewport: Hashable) -> Hashable:  # pragma: no cover - protocol
        ...

    def current_offset(self, viewport: Hashable) -> int:  # pragma: no cover - protocol
        ...

    def set_offset(self, viewport: Hashable, offset: int) -> None:  # pragma: no cover - protocol
        ...

    def is_live(self, document: Any) -> bool:  # pragma: no cover - protocol
        ...

    def is_excluded_kind(self, document: Any) -> bool:  # pragma: no cover - protocol
        ...

    def create_marker(self, document: Any, offset: int) -> Marker:  # pragma: no cover - protocol
        ...
