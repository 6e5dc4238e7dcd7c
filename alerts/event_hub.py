"""
Event Hub
Synchronous publish/subscribe surface for correlation engine events
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Union

from common import CorrelationEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]


class EventHub:
    """Delivers engine events to registered handlers in subscription order.

    Dispatch is synchronous. A handler that raises is logged and skipped;
    the remaining handlers still run and the emitting call never sees the error.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._handlers: Dict[CorrelationEvent, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    @staticmethod
    def _resolve(event: Union[CorrelationEvent, str]) -> CorrelationEvent:
        if isinstance(event, CorrelationEvent):
            return event
        try:
            return CorrelationEvent(event)
        except ValueError:
            pass
        try:
            return CorrelationEvent[event]
        except KeyError:
            raise ValueError(f"Unknown correlation event: {event!r}")

    def subscribe(self, event: Union[CorrelationEvent, str], handler: EventHandler) -> EventHandler:
        """Register a handler; returns it so it can be used as a decorator target"""
        if not callable(handler):
            raise TypeError("Event handler must be callable")
        kind = self._resolve(event)
        with self._lock:
            self._handlers[kind].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)!s} to {kind}")
        return handler

    # EventEmitter-style alias
    on = subscribe

    def unsubscribe(self, event: Union[CorrelationEvent, str], handler: EventHandler) -> bool:
        kind = self._resolve(event)
        with self._lock:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
        return False

    def listener_count(self, event: Union[CorrelationEvent, str]) -> int:
        kind = self._resolve(event)
        with self._lock:
            return len(self._handlers.get(kind, []))

    def remove_all_listeners(self):
        with self._lock:
            self._handlers.clear()

    def emit(self, event: Union[CorrelationEvent, str], payload: Any) -> int:
        """
        Deliver payload to every handler of an event.

        Returns:
            Number of handlers that completed without raising
        """
        if not self.enabled:
            return 0

        kind = self._resolve(event)
        with self._lock:
            handlers = list(self._handlers.get(kind, []))

        delivered = 0
        for handler in handlers:
            try:
                handler(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Error in {kind} handler {getattr(handler, '__name__', handler)!s}: {e}")
        return delivered
