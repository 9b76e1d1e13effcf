"""
Event bus for Roll Enhancements.

Messages, notifications and completed rolls are published here. Each event
type is registered with the JSON Schema its data must satisfy; a published
event is validated, written to the event log, then handed to listeners.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

import jsonschema

from .models import Event
from .storage import RollStorage

logger = logging.getLogger(__name__)

Listener = Callable[[Event], None]


class EventBus:
    """
    Validating pub/sub over the event log.

    Usage:
        bus.register_event_type('message.created', MESSAGE_EVENT_SCHEMA)
        bus.subscribe('message.created', lambda event: print(event.data['message_id']))
        bus.publish(Event.create('message.created', {...}))
    """

    def __init__(self, storage: RollStorage):
        self.storage = storage
        self.schemas: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def register_event_type(self, event_type: str, data_schema: Optional[Dict[str, Any]] = None) -> None:
        """Declare ``event_type``; without a schema any data is accepted."""
        self.schemas[event_type] = data_schema or {}

    def subscribe(self, event_type: str, callback: Listener) -> None:
        listeners = self._listeners[event_type]
        if callback not in listeners:
            listeners.append(callback)

    def unsubscribe(self, event_type: str, callback: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def publish(self, event: Event) -> None:
        """
        Validate, log and dispatch an event.

        Raises:
            ValueError: If the event type was never registered
            jsonschema.ValidationError: If ``event.data`` breaks the type's schema;
                nothing is logged or dispatched
        """
        schema = self.schemas.get(event.event_type)
        if schema is None:
            raise ValueError(f"Event type '{event.event_type}' is not registered")
        jsonschema.validate(event.data, schema)

        self.storage.log_event(event)

        for callback in list(self._listeners.get(event.event_type, ())):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Listener {callback!r} failed on '{event.event_type}': {e}")

    def clear_listeners(self, event_type: Optional[str] = None) -> None:
        """Drop the listeners of one event type, or of every type."""
        if event_type is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event_type, None)

    def get_listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(listeners) for listeners in self._listeners.values())
