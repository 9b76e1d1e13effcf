"""
User-facing notifications.

A notification is a visible notice for whoever is at the table. It is
published as a ``notification.created`` event so front ends can show it,
and kept in ``history`` for the lifetime of the notifier.
"""

import logging
from typing import Dict, List

from .event_bus import EventBus
from .models import Event

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["info", "warning", "error"]},
        "message": {"type": "string"}
    },
    "required": ["level", "message"]
}


class Notifier:
    """Dispatches notifications through the event bus."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus
        self.history: List[Dict[str, str]] = []

    def notify(self, message: str, level: str = 'info') -> None:
        self.history.append({'level': level, 'message': message})
        logger.log(
            {'info': logging.INFO, 'warning': logging.WARNING}.get(level, logging.ERROR),
            f"[notification] {message}"
        )
        self.event_bus.publish(Event.create(
            event_type='notification.created',
            data={'level': level, 'message': message}
        ))

    def info(self, message: str) -> None:
        self.notify(message, 'info')

    def warn(self, message: str) -> None:
        self.notify(message, 'warning')

    def error(self, message: str) -> None:
        self.notify(message, 'error')
