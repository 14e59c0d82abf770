"""Synchronous event bus connecting a host editor to the position memory.

The host publishes :class:`CommandCompleted` after every command and
:class:`ViewportsChanged` whenever a viewport is created, destroyed or swaps
its document. The memory publishes :class:`PositionRestored` and the mode
lifecycle events so embedders can observe what it does.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    Hashable,
    TypeVar,
    TYPE_CHECKING,
)
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for everything published on an :class:`EventBus`."""

    pass


# =============================================================================
# Host events
# =============================================================================


@dataclass(slots=True)
class CommandCompleted(Event):
    """Emitted by the host once a command finished running.

    Attributes:
        frame: The display context the command ran in.
    """

    frame: Hashable


@dataclass(slots=True)
class ViewportsChanged(Event):
    """Emitted when the viewport set of a frame or a viewport's document changed.

    Attributes:
        frame: The display context whose viewports changed.
        reason: Free-form hint for logs (``"split"``, ``"show"``, ``"close"``...).
    """

    frame: Hashable
    reason: str = ""


# Published after every command; too chatty for per-publish debug logs.
_QUIET_EVENT_TYPES: set[type] = {CommandCompleted}


# =============================================================================
# Memory events
# =============================================================================


@dataclass(slots=True)
class PositionRestored(Event):
    """Emitted after a remembered position was applied to a viewport.

    Attributes:
        frame: The display context the viewport belongs to.
        viewport: The viewport whose cursor moved.
        document: The document the viewport now shows.
        offset: The offset handed to the host.
    """

    frame: Hashable
    viewport: Any
    document: Any
    offset: int


@dataclass(slots=True)
class MemoryEnabled(Event):
    """Emitted when position memory starts listening to a bus."""

    pass


@dataclass(slots=True)
class MemoryDisabled(Event):
    """Emitted when position memory stops listening and drops its state.

    Attributes:
        frames: Number of frame contexts that were torn down.
    """

    frames: int = 0


class EventBus(Generic[E]):
    """Typed publish/subscribe bus with synchronous delivery.

    Handlers run in subscription order on the publishing thread. A handler
    that raises is logged and the remaining handlers still run, so a failing
    subscriber never breaks the host's dispatch.

    Bound methods are held through :class:`weakref.WeakMethod`; plain
    functions and lambdas are held strongly.

    Thread Safety:
        Not thread-safe. Publish from the host's event thread only.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``."""
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                logger.debug("Unsubscribed %s from %s", _handler_name(handler), event_type.__name__)
                return

    def publish(self, event: E) -> None:
        """Deliver ``event`` to every handler registered for its type."""
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        is_quiet = event_type in _QUIET_EVENT_TYPES

        if not handlers:
            if not is_quiet:
                logger.debug("No handlers for event type %s", event_type.__name__)
            return

        if not is_quiet:
            logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for handler_ref in dead:
            try:
                handlers.remove(handler_ref)
            except ValueError:  # pragma: no cover - removed by a handler meanwhile
                pass

    def clear(self) -> None:
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the handler count for ``event_type``, or across all types."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference otherwise."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: Any, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref
        return self._ref()

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "CommandCompleted",
    "ViewportsChanged",
    "PositionRestored",
    "MemoryEnabled",
    "MemoryDisabled",
]
