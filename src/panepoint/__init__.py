"""Per-viewport cursor memory for editors that show one document in many places."""

from importlib import import_module
from typing import Any

from .context import MemoryContext
from .errors import ModeStateError, PanepointError, UnknownFrameError
from .events import (
    CommandCompleted,
    Event,
    EventBus,
    MemoryDisabled,
    MemoryEnabled,
    PositionRestored,
    ViewportsChanged,
)
from .host import DIRECTORY_LISTING_KINDS, ViewportHost
from .markers import MarkerTracker, PositionMarker
from .mode import PositionMemoryMode
from .policy import RestorePolicy
from .reclaim import collect_garbage
from .recorder import PositionRecorder
from .settings import Settings, SettingsStore
from .store import PositionStore
from .watcher import ConfigurationWatcher

__all__ = [
    "DIRECTORY_LISTING_KINDS",
    "CommandCompleted",
    "ConfigurationWatcher",
    "Event",
    "EventBus",
    "MarkerTracker",
    "MemoryContext",
    "MemoryDisabled",
    "MemoryEnabled",
    "ModeStateError",
    "PanepointError",
    "PositionMarker",
    "PositionMemoryMode",
    "PositionRecorder",
    "PositionRestored",
    "PositionStore",
    "RestorePolicy",
    "Settings",
    "SettingsStore",
    "UnknownFrameError",
    "ViewportHost",
    "ViewportsChanged",
    "collect_garbage",
]


def __getattr__(name: str) -> Any:
    # Qt and the headless workspace load on first access.
    if name in {"qt_host", "workspace"}:
        module = import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
