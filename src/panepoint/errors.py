"""Exceptions raised at the adapter seam.

Nothing in the recorder, watcher or restore policy raises these; hook bodies
swallow and log host failures instead. They signal misuse of the mode API.
"""

from __future__ import annotations

from typing import Any, ClassVar, Hashable

__all__ = ["PanepointError", "UnknownFrameError", "ModeStateError"]


class PanepointError(Exception):
    """Base class for panepoint errors."""

    error_code: ClassVar[str] = "panepoint_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": str(self)}


class UnknownFrameError(PanepointError, KeyError):
    """Raised when a frame has no memory context yet."""

    error_code: ClassVar[str] = "unknown_frame"

    def __init__(self, frame: Hashable) -> None:
        super().__init__(f"No position memory for frame {frame!r}")
        self.frame = frame

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class ModeStateError(PanepointError, RuntimeError):
    """Raised by strict enable/disable calls that would be no-ops."""

    error_code: ClassVar[str] = "mode_state"
