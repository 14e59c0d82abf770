"""PySide6 host: ``QPlainTextEdit`` viewports over shared ``QTextDocument`` objects.

Qt already keeps ``QTextCursor`` objects in step with document edits, so the
store's markers are plain cursors. Recording is driven by
``cursorPositionChanged``; swapping documents goes through
:meth:`QtViewportHost.show_document` so the memory sees the change.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Hashable, Iterator, Sequence

from PySide6.QtGui import QTextCursor, QTextDocument
from PySide6.QtWidgets import QPlainTextDocumentLayout, QPlainTextEdit
from shiboken6 import isValid

from .events import CommandCompleted, EventBus, ViewportsChanged
from .host import DIRECTORY_LISTING_KINDS

__all__ = ["QtCursorMarker", "QtViewportHost"]

LOGGER = logging.getLogger(__name__)

KIND_PROPERTY = "panepointKind"
CLOSED_PROPERTY = "panepointClosed"


def _max_offset(document: QTextDocument) -> int:
    # characterCount() includes the trailing paragraph separator.
    return max(0, document.characterCount() - 1)


class QtCursorMarker:
    """Marker backed by a ``QTextCursor`` bound to its document."""

    __slots__ = ("_document", "_cursor")

    def __init__(self, document: QTextDocument, offset: int) -> None:
        self._document = document
        self._cursor = QTextCursor(document)
        self.move_to(offset)

    def __repr__(self) -> str:
        return f"QtCursorMarker(position={self.position})"

    @property
    def document(self) -> QTextDocument:
        return self._document

    @property
    def position(self) -> int:
        if not isValid(self._document) or self._cursor.isNull():
            return 0
        return self._cursor.position()

    def move_to(self, offset: int) -> None:
        if not isValid(self._document):
            return
        self._cursor.setPosition(max(0, min(int(offset), _max_offset(self._document))))


@dataclass(slots=True)
class _Registration:
    editor: QPlainTextEdit
    frame: Hashable
    track_cursor: bool = True


class QtViewportHost:
    """Tracks attached editors per frame and publishes their events on a bus."""

    def __init__(
        self,
        *,
        bus: EventBus | None = None,
        excluded_kind: Callable[[QTextDocument], bool] | None = None,
    ) -> None:
        self._bus = bus or EventBus()
        self._excluded_kind = excluded_kind or (
            lambda document: document.property(KIND_PROPERTY) in DIRECTORY_LISTING_KINDS
        )
        self._registrations: Dict[int, _Registration] = {}
        self._connected: set[int] = set()
        self._documents: list[QTextDocument] = []
        self._suspended = 0

    @property
    def bus(self) -> EventBus:
        return self._bus

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    def create_document(self, text: str = "", *, kind: str = "text") -> QTextDocument:
        """Create a plain-text document usable by ``QPlainTextEdit``."""

        document = QTextDocument()
        document.setDocumentLayout(QPlainTextDocumentLayout(document))
        document.setPlainText(text)
        document.setProperty(KIND_PROPERTY, kind)
        self._documents.append(document)
        return document

    def close_document(self, document: QTextDocument, *, replacement: QTextDocument | None = None) -> None:
        """Mark ``document`` closed and move its editors to ``replacement``."""

        document.setProperty(CLOSED_PROPERTY, True)
        if document in self._documents:
            self._documents.remove(document)
        frames: list[Hashable] = []
        for registration in self._live_registrations():
            if registration.editor.document() is not document:
                continue
            fallback = replacement if replacement is not None else self.create_document()
            replacement = fallback
            with self._suspend():
                registration.editor.setDocument(fallback)
            if registration.frame not in frames:
                frames.append(registration.frame)
        for frame in frames:
            self._publish_change(frame, "close-document")

    # ------------------------------------------------------------------
    # Editors
    # ------------------------------------------------------------------
    def attach(
        self,
        editor: QPlainTextEdit,
        document: QTextDocument | None = None,
        *,
        frame: Hashable | None = None,
        track_cursor: bool = True,
    ) -> Hashable:
        """Register ``editor`` as a viewport of ``frame`` (default: its window)."""

        key = id(editor)
        existing = self._registrations.get(key)
        if existing is not None:
            if document is not None:
                self.show_document(editor, document)
            return existing.frame

        resolved_frame = frame if frame is not None else editor.window()
        if document is not None:
            with self._suspend():
                editor.setDocument(document)
        self._registrations[key] = _Registration(editor=editor, frame=resolved_frame, track_cursor=track_cursor)
        if key not in self._connected:
            # Signals stay connected across detach; handlers look the registration up.
            editor.destroyed.connect(partial(self._on_editor_destroyed, key))
            editor.cursorPositionChanged.connect(partial(self._on_cursor_moved, key))
            self._connected.add(key)
        self._publish_change(resolved_frame, "attach")
        return resolved_frame

    def detach(self, editor: QPlainTextEdit) -> None:
        registration = self._registrations.pop(id(editor), None)
        if registration is not None:
            self._publish_change(registration.frame, "detach")

    def show_document(self, editor: QPlainTextEdit, document: QTextDocument) -> None:
        """Swap the document an attached editor displays."""

        registration = self._registrations.get(id(editor))
        if registration is None:
            raise KeyError("Editor is not attached to this host")
        if editor.document() is document:
            return
        with self._suspend():
            editor.setDocument(document)
        self._publish_change(registration.frame, "show")

    def command_completed(self, frame: Hashable) -> None:
        self._bus.publish(CommandCompleted(frame=frame))

    # ------------------------------------------------------------------
    # ViewportHost surface
    # ------------------------------------------------------------------
    def live_viewports(self, frame: Hashable) -> Sequence[QPlainTextEdit]:
        return tuple(
            registration.editor for registration in self._live_registrations() if registration.frame == frame
        )

    def current_document(self, viewport: QPlainTextEdit) -> QTextDocument:
        return viewport.document()

    def current_offset(self, viewport: QPlainTextEdit) -> int:
        return viewport.textCursor().position()

    def set_offset(self, viewport: QPlainTextEdit, offset: int) -> None:
        cursor = viewport.textCursor()
        cursor.setPosition(max(0, min(int(offset), _max_offset(viewport.document()))))
        with self._suspend():
            viewport.setTextCursor(cursor)

    def is_live(self, document: Any) -> bool:
        return isValid(document) and not document.property(CLOSED_PROPERTY)

    def is_excluded_kind(self, document: Any) -> bool:
        return bool(self._excluded_kind(document))

    def create_marker(self, document: QTextDocument, offset: int) -> QtCursorMarker:
        return QtCursorMarker(document, offset)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @contextmanager
    def _suspend(self) -> Iterator[None]:
        # Programmatic cursor moves must not re-enter the recorder.
        self._suspended += 1
        try:
            yield
        finally:
            self._suspended -= 1

    def _live_registrations(self) -> list[_Registration]:
        return [registration for registration in self._registrations.values() if isValid(registration.editor)]

    def _on_cursor_moved(self, key: int) -> None:
        if self._suspended:
            return
        registration = self._registrations.get(key)
        if registration is None or not registration.track_cursor:
            return
        self.command_completed(registration.frame)

    def _on_editor_destroyed(self, key: int, *_args: Any) -> None:
        self._connected.discard(key)
        registration = self._registrations.pop(key, None)
        if registration is None:
            return
        LOGGER.debug("Editor destroyed in frame %r", registration.frame)
        self._publish_change(registration.frame, "destroyed")

    def _publish_change(self, frame: Hashable, reason: str) -> None:
        self._bus.publish(ViewportsChanged(frame=frame, reason=reason))
