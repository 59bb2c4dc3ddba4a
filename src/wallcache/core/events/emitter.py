"""
Event Emitter for wallcache

Provides thread-safe synchronous event broadcasting with observer
management, error isolation and a bounded event history.
"""

import logging
import threading
import weakref
from collections import defaultdict, deque
from typing import Any, Callable, Dict, List, Optional, Union

from wallcache.core.events.types import EventType


logger = logging.getLogger(__name__)


class EventEmitter:
    """
    Thread-safe event emitter.

    Observers are called synchronously on the emitting thread, in
    subscription order per type followed by wildcard observers. An observer
    that raises is logged and skipped; it never interrupts the emitter.
    """

    def __init__(self, max_history: int = 1000, enable_history: bool = True):
        """
        Initialize the event emitter.

        Args:
            max_history: Maximum number of events to keep in history
            enable_history: Whether to store event history
        """
        self.max_history = max_history
        self.enable_history = enable_history

        self._lock = threading.RLock()
        self._observers: Dict[str, List[Any]] = defaultdict(list)
        self._wildcard_observers: List[Any] = []
        self._event_history: deque = deque(maxlen=max_history if enable_history else 0)

        self._stats = {
            'events_emitted': 0,
            'observers_notified': 0,
            'observer_errors': 0,
        }

    def subscribe(self,
                  event_type: Union[str, type],
                  observer: Callable,
                  weak: bool = False) -> bool:
        """
        Subscribe an observer to events of a specific type.

        Args:
            event_type: Event type to subscribe to (class, name, or '*')
            observer: Callable receiving the event
            weak: Hold only a weak reference to the observer

        Returns:
            True if subscription was successful
        """
        event_type_str = self._type_name(event_type)
        if weak:
            ref = weakref.WeakMethod(observer) if hasattr(observer, '__self__') else weakref.ref(observer)
        else:
            ref = observer

        with self._lock:
            if event_type_str in ('*', 'all'):
                self._wildcard_observers.append(ref)
            else:
                self._observers[event_type_str].append(ref)

        logger.debug(f"Subscribed observer to {event_type_str} events")
        return True

    def unsubscribe(self, event_type: Union[str, type], observer: Callable) -> bool:
        """
        Unsubscribe an observer from events.

        Returns:
            True if the observer was found and removed
        """
        event_type_str = self._type_name(event_type)

        with self._lock:
            if event_type_str in ('*', 'all'):
                bucket = self._wildcard_observers
            else:
                bucket = self._observers.get(event_type_str, [])

            remaining = [obs for obs in bucket if self._resolve(obs) is not observer]
            removed = len(remaining) != len(bucket)
            bucket[:] = remaining

        if removed:
            logger.debug(f"Unsubscribed observer from {event_type_str} events")
        return removed

    def emit(self, event: EventType) -> None:
        """
        Deliver an event to all subscribed observers.

        Args:
            event: Event instance to emit
        """
        with self._lock:
            self._stats['events_emitted'] += 1
            if self.enable_history:
                self._event_history.append(event)
            observers = list(self._observers.get(event.event_type, [])) + list(self._wildcard_observers)

        for ref in observers:
            observer = self._resolve(ref)
            if observer is None:
                continue  # Weak reference expired
            try:
                observer(event)
            except Exception as e:
                with self._lock:
                    self._stats['observer_errors'] += 1
                logger.warning(f"Observer error for {event.event_type}: {e}")
            else:
                with self._lock:
                    self._stats['observers_notified'] += 1

    def get_event_history(self,
                          event_type: Optional[str] = None,
                          limit: Optional[int] = None) -> List[EventType]:
        """
        Get event history, optionally filtered by type.

        Args:
            event_type: Filter by specific event type name
            limit: Maximum number of most recent events to return
        """
        with self._lock:
            events = list(self._event_history)

        if event_type:
            events = [e for e in events if e.event_type == event_type]
        if limit:
            events = events[-limit:]
        return events

    def get_statistics(self) -> Dict[str, Any]:
        """Get event system statistics."""
        with self._lock:
            return {
                **self._stats,
                'total_observers': sum(len(obs) for obs in self._observers.values()),
                'wildcard_observers': len(self._wildcard_observers),
                'history_size': len(self._event_history),
            }

    def clear_observers(self) -> None:
        """Remove all observers."""
        with self._lock:
            self._observers.clear()
            self._wildcard_observers.clear()

    @staticmethod
    def _type_name(event_type: Union[str, type]) -> str:
        if isinstance(event_type, type):
            return event_type.__name__
        return str(event_type)

    @staticmethod
    def _resolve(ref: Any) -> Optional[Callable]:
        if isinstance(ref, weakref.ref):
            return ref()
        return ref
