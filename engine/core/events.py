"""
Typed event bus for document lifecycle notifications.

Event types are Enum members, so subscribers never match on magic strings.
Collections publish DataEvent members as documents are created, updated
and deleted; the registry publishes when it locks.

Usage:
    bus = EventBus()
    bus.subscribe(DataEvent.DOCUMENT_UPDATED, on_update)
    bus.publish(DataEvent.DOCUMENT_UPDATED, document=item, diff={"name": "Axe"})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class DataEvent(Enum):
    """Document data events."""
    # Registry
    REGISTRY_LOCKED = auto()

    # Documents
    DOCUMENT_CREATED = auto()
    DOCUMENT_UPDATED = auto()
    DOCUMENT_DELETED = auto()
    DOCUMENT_MIGRATED = auto()

    # Data packs
    DATA_LOADED = auto()


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Event-specific keyword data
        consumed: Whether a handler stopped propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Publish/subscribe dispatcher.

    Features:
    - Priority ordering (higher first)
    - Optional weak references to handlers
    - One-shot handlers
    - Consumption stops propagation
    - Events published from a handler are queued until dispatch finishes
    """

    def __init__(self):
        # event type -> [(priority, handler or ref, one_shot)]
        self._handlers: dict[Enum, list[tuple[int, Any, bool]]] = {}
        self._queue: list[Event] = []
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = False,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback receiving the Event
            priority: Higher priority handlers are called first
            one_shot: Remove the handler after its first call
            weak: Hold the handler weakly (dropped once garbage collected)
        """
        if weak:
            entry = WeakMethod(handler) if hasattr(handler, "__self__") else ref(handler)
        else:
            entry = handler

        handlers = self._handlers.setdefault(event_type, [])
        index = len(handlers)
        for i, (p, _, _) in enumerate(handlers):
            if priority > p:
                index = i
                break
        handlers.insert(index, (priority, entry, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        self._handlers[event_type] = [
            entry for entry in handlers if self._resolve(entry[1]) != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event (check .consumed to see whether it was handled)
        """
        event = Event(type=event_type, data=data)
        if self._dispatching:
            self._queue.append(event)
        else:
            self._dispatch(event)
        return event

    def clear(self, event_type: Enum | None = None) -> None:
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        handlers = self._handlers.get(event.type)
        if handlers:
            self._dispatching = True
            stale = []
            try:
                for i, (_, entry, one_shot) in enumerate(handlers):
                    handler = self._resolve(entry)
                    if handler is None:
                        stale.append(i)
                        continue
                    try:
                        handler(event)
                    except Exception:
                        logger.exception("Error in event handler for %s", event.type)
                    if one_shot:
                        stale.append(i)
                    if event.consumed:
                        break
            finally:
                for i in reversed(stale):
                    handlers.pop(i)
                self._dispatching = False

        while self._queue:
            self._dispatch(self._queue.pop(0))

    @staticmethod
    def _resolve(entry: Any) -> EventHandler | None:
        if isinstance(entry, (ref, WeakMethod)):
            return entry()
        return entry
