"""Headless host with frames, viewports and documents.

:class:`Workspace` keeps everything in memory and implements
:class:`~panepoint.host.ViewportHost`, so the position memory can run without
a GUI toolkit. Document edits are reported to each document's
:class:`~panepoint.markers.MarkerTracker`, which keeps both viewport cursors and
remembered positions pointing at the same text.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Sequence, TypeVar

from .events import CommandCompleted, EventBus, ViewportsChanged
from .host import DIRECTORY_LISTING_KINDS
from .markers import MarkerTracker, PositionMarker

__all__ = ["Document", "Frame", "Viewport", "Workspace"]

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _generate_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False, slots=True)
class Document:
    """Editable text buffer with a liveness flag.

    ``point`` is the buffer-wide position the host falls back to when a
    viewport starts showing the document.
    """

    name: str
    text: str = ""
    kind: str = "text"
    document_id: str = field(default_factory=_generate_id)
    live: bool = True
    point: int = 0
    markers: MarkerTracker = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.markers = MarkerTracker(self, length=lambda: len(self.text))
        self.point = max(0, min(self.point, len(self.text)))

    def __len__(self) -> int:
        return len(self.text)

    def insert(self, position: int, text: str) -> None:
        """Insert ``text`` at ``position`` (clamped) and shift markers after it."""

        if not text:
            return
        position = self._clamp(position)
        self.text = self.text[:position] + text + self.text[position:]
        if position < self.point:
            self.point += len(text)
        self.markers.inserted(position, len(text))

    def delete(self, start: int, end: int) -> None:
        """Delete ``text[start:end]`` (clamped) and pull markers back."""

        start, end = self._clamp(start), self._clamp(end)
        if end < start:
            start, end = end, start
        if start == end:
            return
        self.text = self.text[:start] + self.text[end:]
        if self.point >= end:
            self.point -= end - start
        elif self.point > start:
            self.point = start
        self.markers.deleted(start, end)

    def _clamp(self, position: int) -> int:
        return max(0, min(int(position), len(self.text)))


class Viewport:
    """Region of a frame showing exactly one document."""

    __slots__ = ("id", "frame", "_document", "_cursor", "live")

    def __init__(self, frame: "Frame", document: Document, *, offset: int | None = None) -> None:
        self.id = _generate_id()
        self.frame = frame
        self.live = True
        self._document = document
        self._cursor = self._place_cursor(document, document.point if offset is None else offset)

    def __repr__(self) -> str:
        return f"Viewport(id={self.id[:8]}, document={self._document.name!r}, offset={self.offset})"

    @property
    def document(self) -> Document:
        return self._document

    @property
    def offset(self) -> int:
        return self._cursor.position

    def goto(self, offset: int) -> int:
        """Move the cursor (clamped) and make it the document's point."""

        self._cursor.move_to(offset)
        self._document.point = self._cursor.position
        return self._cursor.position

    def display(self, document: Document, offset: int | None = None) -> None:
        self._document = document
        self._cursor = self._place_cursor(document, document.point if offset is None else offset)

    @staticmethod
    def _place_cursor(document: Document, offset: int) -> PositionMarker:
        return document.markers.create(offset)


@dataclass(eq=False, slots=True)
class Frame:
    """Top-level display context owning an ordered list of viewports."""

    name: str
    frame_id: str = field(default_factory=_generate_id)
    viewports: List[Viewport] = field(default_factory=list)
    selected: Viewport | None = None
    live: bool = True


class Workspace:
    """In-memory editor host publishing configuration and command events."""

    SCRATCH_NAME = "*scratch*"

    def __init__(
        self,
        *,
        bus: EventBus | None = None,
        excluded_kind: Callable[[Document], bool] | None = None,
    ) -> None:
        self._bus = bus or EventBus()
        self._excluded_kind = excluded_kind or (lambda document: document.kind in DIRECTORY_LISTING_KINDS)
        self._documents: Dict[str, Document] = {}
        self._frames: List[Frame] = []

    @property
    def bus(self) -> EventBus:
        return self._bus

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    def create_document(self, name: str, text: str = "", *, kind: str = "text") -> Document:
        document = Document(name=name, text=text, kind=kind)
        self._documents[document.document_id] = document
        return document

    def documents(self) -> tuple[Document, ...]:
        return tuple(doc for doc in self._documents.values() if doc.live)

    def find_document(self, name: str) -> Document | None:
        for document in self.documents():
            if document.name == name:
                return document
        return None

    def kill_document(self, document: Document, *, replacement: Document | None = None) -> None:
        """Destroy ``document``; viewports showing it switch to ``replacement``.

        Without a replacement the most recently created live document is used,
        falling back to a fresh scratch document.
        """

        if not document.live:
            return
        document.live = False
        self._documents.pop(document.document_id, None)
        affected = [viewport for viewport in self.iter_viewports() if viewport.document is document]
        if affected:
            fallback = replacement if replacement is not None and replacement.live else self._fallback_document()
            for viewport in affected:
                viewport.display(fallback)
        LOGGER.debug("Killed document %s (%d viewport(s) reassigned)", document.name, len(affected))
        for frame in self.frames():
            self._publish_change(frame, "kill-document")

    def _fallback_document(self) -> Document:
        live = self.documents()
        if live:
            return live[-1]
        return self.create_document(self.SCRATCH_NAME)

    # ------------------------------------------------------------------
    # Frames & viewports
    # ------------------------------------------------------------------
    def create_frame(self, document: Document | None = None, *, name: str | None = None) -> Frame:
        """Open a frame with a single viewport showing ``document``."""

        frame = Frame(name=name or f"frame-{len(self._frames) + 1}")
        target = document if document is not None and document.live else self._fallback_document()
        viewport = Viewport(frame, target)
        frame.viewports.append(viewport)
        frame.selected = viewport
        self._frames.append(frame)
        self._publish_change(frame, "frame-created")
        return frame

    def close_frame(self, frame: Frame) -> None:
        if frame not in self._frames:
            raise KeyError(f"Unknown frame: {frame.name}")
        self._frames.remove(frame)
        for viewport in frame.viewports:
            viewport.live = False
        frame.viewports.clear()
        frame.selected = None
        frame.live = False
        self._publish_change(frame, "frame-closed")

    def frames(self) -> tuple[Frame, ...]:
        return tuple(self._frames)

    def iter_viewports(self) -> Iterator[Viewport]:
        for frame in self._frames:
            yield from frame.viewports

    def split(self, viewport: Viewport) -> Viewport:
        """Add a viewport after ``viewport`` showing the same document at the same offset."""

        frame = self._require_live(viewport).frame
        sibling = Viewport(frame, viewport.document, offset=viewport.offset)
        frame.viewports.insert(frame.viewports.index(viewport) + 1, sibling)
        self._publish_change(frame, "split")
        return sibling

    def close_viewport(self, viewport: Viewport) -> None:
        frame = self._require_live(viewport).frame
        if len(frame.viewports) == 1:
            raise ValueError("Cannot close the sole viewport of a frame")
        index = frame.viewports.index(viewport)
        frame.viewports.remove(viewport)
        viewport.live = False
        if frame.selected is viewport:
            frame.selected = frame.viewports[min(index, len(frame.viewports) - 1)]
        self._publish_change(frame, "close")

    def show(self, viewport: Viewport, document: Document) -> None:
        """Display ``document`` in ``viewport`` at the document's own point."""

        self._require_live(viewport)
        if not document.live:
            raise ValueError(f"Document {document.name} has been killed")
        if viewport.document is document:
            return
        viewport.display(document)
        self._publish_change(viewport.frame, "show")

    def select(self, viewport: Viewport) -> None:
        self._require_live(viewport).frame.selected = viewport

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def run_command(self, frame: Frame, command: Callable[..., T] | None = None, *args: Any) -> T | None:
        """Run ``command`` (if any) and then announce a completed command for ``frame``."""

        result = command(*args) if command is not None else None
        self._bus.publish(CommandCompleted(frame=frame))
        return result

    def type_text(self, viewport: Viewport, text: str) -> None:
        """Insert ``text`` at the viewport cursor and move the cursor past it."""

        start = viewport.offset
        viewport.document.insert(start, text)
        viewport.goto(start + len(text))

    # ------------------------------------------------------------------
    # ViewportHost surface
    # ------------------------------------------------------------------
    def live_viewports(self, frame: Frame) -> Sequence[Viewport]:
        if not frame.live:
            return ()
        return tuple(viewport for viewport in frame.viewports if viewport.live)

    def current_document(self, viewport: Viewport) -> Document:
        return viewport.document

    def current_offset(self, viewport: Viewport) -> int:
        return viewport.offset

    def set_offset(self, viewport: Viewport, offset: int) -> None:
        viewport.goto(offset)

    def is_live(self, document: Any) -> bool:
        return bool(getattr(document, "live", False))

    def is_excluded_kind(self, document: Any) -> bool:
        return bool(self._excluded_kind(document))

    def create_marker(self, document: Document, offset: int) -> PositionMarker:
        return document.markers.create(offset)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_live(self, viewport: Viewport) -> Viewport:
        if not viewport.live:
            raise ValueError("Viewport has been closed")
        return viewport

    def _publish_change(self, frame: Frame, reason: str) -> None:
        self._bus.publish(ViewportsChanged(frame=frame, reason=reason))
