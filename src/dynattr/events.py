"""
dynattr.events  ──  Event-based decorators for Record lifecycle hooks

    @on.before_create(Item)
    def stamp(item): ...

`RecordStore` emits `before_create` / `before_update` right before writing a
row and `create` / `update` right after.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Callable, Dict, Set, Type

if TYPE_CHECKING:
    from .core.record import Record

logger = logging.getLogger(__name__)

EVENT_TYPES = ("before_create", "before_update", "create", "update")


class EventRegistry:
    """Central registry for event handlers"""

    def __init__(self):
        # Maps event type -> record class name -> set of handlers
        self._handlers: Dict[str, Dict[str, Set[Callable]]] = {
            event_type: defaultdict(set) for event_type in EVENT_TYPES
        }

    def register(
        self,
        event_type: str,
        record_classes: tuple[Type[Record], ...],
        handler: Callable,
    ) -> None:
        """Register a handler for specific record classes"""
        if event_type not in self._handlers:
            raise ValueError(f"unknown event type {event_type!r}")
        for cls in record_classes:
            self._handlers[event_type][cls.__name__].add(handler)

    def emit(self, event_type: str, instance: Record) -> None:
        """Emit event to all handlers of the instance class and its parents"""
        handlers: Set[Callable] = set()
        for cls in type(instance).__mro__:
            handlers.update(self._handlers[event_type].get(cls.__name__, ()))

        if handlers:
            logger.debug(
                "emitting %s to %d handler(s) for %s",
                event_type,
                len(handlers),
                type(instance).__name__,
            )
        for handler in handlers:
            handler(instance)


# Global registry instance
_registry = EventRegistry()


class OnDecorator:
    """Namespace for event decorators"""

    @staticmethod
    def _decorator(event_type: str, record_classes: tuple[Type[Record], ...]) -> Callable:
        def decorator(func: Callable) -> Callable:
            _registry.register(event_type, record_classes, func)
            return func

        return decorator

    def before_create(self, *record_classes: Type[Record]) -> Callable:
        """Run before a new record row is inserted"""
        return self._decorator("before_create", record_classes)

    def before_update(self, *record_classes: Type[Record]) -> Callable:
        """Run before an existing record row is updated"""
        return self._decorator("before_update", record_classes)

    def create(self, *record_classes: Type[Record]) -> Callable:
        """Run after a record row was inserted"""
        return self._decorator("create", record_classes)

    def update(self, *record_classes: Type[Record]) -> Callable:
        """Run after a record row was updated"""
        return self._decorator("update", record_classes)


# Export the decorator interface
on = OnDecorator()


def emit(event_type: str, instance: Record) -> None:
    _registry.emit(event_type, instance)
