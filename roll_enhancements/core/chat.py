"""
Chat message store and the host's message conventions.

Every roll that is shown to the table ends up as one ``ChatMessage``.
Visibility follows the roll mode:

- publicroll: everyone sees it
- gmroll: whispered to the GMs
- blindroll: whispered to the GMs, hidden from the roller
- selfroll: whispered to the roller only
"""

import logging
from typing import Any, Dict, List, Optional

from .event_bus import EventBus
from .models import ChatMessage, Event
from .storage import RollStorage

logger = logging.getLogger(__name__)


class ChatMessageTypes:
    OTHER = 0
    OOC = 1
    IC = 2
    EMOTE = 3
    WHISPER = 4
    ROLL = 5


DICE_SOUND = 'sounds/dice.wav'

MESSAGE_EVENT_SCHEMA = {
    "type": "object",
    "properties": {
        "message_id": {"type": "string"},
        "user": {"type": ["string", "null"]},
        "flavor": {"type": "string"},
        "whisper": {"type": "array", "items": {"type": "string"}},
        "blind": {"type": "boolean"}
    },
    "required": ["message_id"]
}


def get_speaker(actor: Optional[str]) -> Dict[str, Optional[str]]:
    """Speaker record for a message sent on behalf of ``actor``."""
    return {'actor': actor, 'alias': actor}


def apply_roll_mode(message_data: Dict[str, Any], roll_mode: str,
                    user_id: str, gm_user_ids: List[str]) -> Dict[str, Any]:
    """
    Apply a roll mode's visibility to a message payload in place.

    Args:
        message_data: Payload to update
        roll_mode: publicroll, gmroll, blindroll or selfroll
        user_id: User making the roll
        gm_user_ids: Users with the GM role

    Returns:
        ``message_data``, for chaining
    """
    if roll_mode in ('gmroll', 'blindroll'):
        message_data['whisper'] = list(gm_user_ids)
    elif roll_mode == 'selfroll':
        message_data['whisper'] = [user_id]
    else:
        message_data['whisper'] = []

    message_data['blind'] = roll_mode == 'blindroll'
    return message_data


class MessageStore:
    """Creates and persists chat messages."""

    def __init__(self, storage: RollStorage, event_bus: EventBus):
        self.storage = storage
        self.event_bus = event_bus

    def create(self, message_data: Dict[str, Any]) -> ChatMessage:
        """
        Persist a message payload.

        Args:
            message_data: Complete message payload

        Returns:
            The created ChatMessage
        """
        message = ChatMessage.create(message_data)
        self.storage.save_message(message)
        logger.debug(f"Created chat message {message.id}: {message.flavor}")

        self.event_bus.publish(Event.create(
            event_type='message.created',
            actor_id=message.user,
            data={
                'message_id': message.id,
                'user': message.user,
                'flavor': message.flavor,
                'whisper': list(message_data.get('whisper', [])),
                'blind': bool(message_data.get('blind', False))
            }
        ))
        return message

    def get(self, message_id: str) -> Optional[ChatMessage]:
        return self.storage.get_message(message_id)

    def list(self, limit: int = 50) -> List[ChatMessage]:
        return self.storage.list_messages(limit)

    def count(self) -> int:
        return self.storage.count_messages()
