"""
Records persisted by the roll engine: chat messages and logged events.

Both are append-only; nothing updates a message or an event once stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import uuid


def generate_id(prefix: str) -> str:
    """``'msg'`` -> ``'msg_a1b2c3d4e5f6'``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChatMessage:
    """
    A posted chat message.

    ``data`` is the payload exactly as handed to the message store (content,
    flavor, speaker, flags, whisper, blind, roll mode...).
    """
    id: str
    data: Dict[str, Any]
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, data: Dict[str, Any], message_id: Optional[str] = None) -> 'ChatMessage':
        return cls(id=message_id or generate_id('msg'), data=data)

    @property
    def user(self) -> Optional[str]:
        return self.data.get('user')

    @property
    def content(self) -> str:
        return self.data.get('content', '')

    @property
    def flavor(self) -> str:
        return self.data.get('flavor', '')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user': self.user,
            'data': self.data,
            'created_at': self.created_at.isoformat()
        }


@dataclass
class Event:
    """
    Something that happened: a roll completed, a message was created, a
    notification was raised, an item was imported.
    """
    event_id: str
    timestamp: datetime
    event_type: str
    item_id: Optional[str]
    actor_id: Optional[str]
    data: Dict[str, Any]

    @classmethod
    def create(cls, event_type: str, data: Dict[str, Any],
               item_id: Optional[str] = None,
               actor_id: Optional[str] = None,
               event_id: Optional[str] = None) -> 'Event':
        return cls(
            event_id=event_id or generate_id('evt'),
            timestamp=utcnow(),
            event_type=event_type,
            item_id=item_id,
            actor_id=actor_id,
            data=data
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'timestamp': self.timestamp.isoformat(),
            'event_type': self.event_type,
            'item_id': self.item_id,
            'actor_id': self.actor_id,
            'data': self.data
        }
