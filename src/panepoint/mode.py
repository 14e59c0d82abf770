"""Enable/disable wiring between a host's event bus and the position memory."""

from __future__ import annotations

import logging
from typing import Dict, Hashable, Iterator

from .context import MemoryContext
from .errors import ModeStateError, UnknownFrameError
from .events import CommandCompleted, EventBus, MemoryDisabled, MemoryEnabled, ViewportsChanged
from .host import ViewportHost
from .recorder import PositionRecorder
from .settings import Settings
from .utils.logging import configure_logging
from .watcher import ConfigurationWatcher

__all__ = ["PositionMemoryMode"]

LOGGER = logging.getLogger(__name__)


class PositionMemoryMode:
    """Per-viewport cursor memory for every frame a host publishes events for.

    While enabled, :class:`CommandCompleted` runs the recorder and
    :class:`ViewportsChanged` runs the configuration watcher for the event's
    frame. Each frame gets its own :class:`MemoryContext` on first use and
    loses it once the host reports no live viewports for it; disabling tears
    all of them down.
    """

    def __init__(
        self,
        host: ViewportHost,
        bus: EventBus,
        *,
        settings: Settings | None = None,
        recorder: PositionRecorder | None = None,
        watcher: ConfigurationWatcher | None = None,
    ) -> None:
        self._host = host
        self._bus = bus
        self._settings = settings or Settings()
        self._recorder = recorder or PositionRecorder()
        self._watcher = watcher or ConfigurationWatcher()
        self._contexts: Dict[Hashable, MemoryContext] = {}
        self._enabled = False

    @classmethod
    def from_settings(
        cls,
        host: ViewportHost,
        bus: EventBus,
        settings: Settings,
        *,
        apply_logging: bool = True,
    ) -> "PositionMemoryMode":
        """Build a mode and enable it when ``settings.enabled`` is set.

        With ``apply_logging`` the package logger is configured from
        ``settings.debug_logging`` and ``settings.log_dir`` first.
        """

        if apply_logging:
            configure_logging(settings)
        mode = cls(host, bus, settings=settings)
        if settings.enabled:
            mode.enable()
        return mode

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def settings(self) -> Settings:
        return self._settings

    def enable(self, *, strict: bool = False) -> None:
        if self._enabled:
            if strict:
                raise ModeStateError("Position memory is already enabled")
            return
        self._contexts.clear()
        self._bus.subscribe(CommandCompleted, self._on_command_completed)
        self._bus.subscribe(ViewportsChanged, self._on_viewports_changed)
        self._enabled = True
        LOGGER.debug("Position memory enabled")
        self._bus.publish(MemoryEnabled())

    def disable(self, *, strict: bool = False) -> None:
        if not self._enabled:
            if strict:
                raise ModeStateError("Position memory is not enabled")
            return
        self._bus.unsubscribe(CommandCompleted, self._on_command_completed)
        self._bus.unsubscribe(ViewportsChanged, self._on_viewports_changed)
        frames = len(self._contexts)
        for context in self._contexts.values():
            context.reset()
        self._contexts.clear()
        self._enabled = False
        LOGGER.debug("Position memory disabled; dropped %d frame context(s)", frames)
        self._bus.publish(MemoryDisabled(frames=frames))

    def toggle(self) -> bool:
        """Flip the mode and return the new state."""

        if self._enabled:
            self.disable()
        else:
            self.enable()
        return self._enabled

    # ------------------------------------------------------------------
    # Frame contexts
    # ------------------------------------------------------------------
    def context(self, frame: Hashable) -> MemoryContext:
        """Return the memory of ``frame``; raises when the frame was never seen."""

        try:
            return self._contexts[frame]
        except KeyError:
            raise UnknownFrameError(frame) from None

    def ensure_context(self, frame: Hashable) -> MemoryContext:
        context = self._contexts.get(frame)
        if context is None:
            context = MemoryContext.create(
                frame,
                self._host,
                bus=self._bus,
                prune_dead_viewports=self._settings.prune_dead_viewports,
                publish_restore_events=self._settings.publish_restore_events,
            )
            self._contexts[frame] = context
            LOGGER.debug("Created position memory for frame %r", frame)
        return context

    def forget_frame(self, frame: Hashable) -> bool:
        """Drop the memory of a closed frame."""

        context = self._contexts.pop(frame, None)
        if context is None:
            return False
        context.reset()
        return True

    def iter_contexts(self) -> Iterator[MemoryContext]:
        return iter(list(self._contexts.values()))

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def _on_command_completed(self, event: CommandCompleted) -> None:
        try:
            self._recorder.record(self.ensure_context(event.frame))
        except Exception:
            LOGGER.exception("Recording positions failed for frame %r", event.frame)
        self._release_if_closed(event.frame)

    def _on_viewports_changed(self, event: ViewportsChanged) -> None:
        try:
            self._watcher.handle(self.ensure_context(event.frame))
        except Exception:
            LOGGER.exception("Reconciling viewports failed for frame %r (%s)", event.frame, event.reason)
        self._release_if_closed(event.frame)

    def _release_if_closed(self, frame: Hashable) -> None:
        # A frame without live viewports has nothing left to remember.
        try:
            closed = not self._host.live_viewports(frame)
        except Exception:
            LOGGER.debug("Unable to list viewports of frame %r", frame, exc_info=True)
            return
        if closed and self.forget_frame(frame):
            LOGGER.debug("Released position memory of closed frame %r", frame)
