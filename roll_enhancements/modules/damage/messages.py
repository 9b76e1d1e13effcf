"""
Combined damage message.

All parts of one damage roll are posted as a single chat message. The
message carries a zero-total decoy roll so the host treats it as a roll
message; the real results are the rendered card and the serialized part
rolls in the module flags.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, List, Mapping, Optional, Sequence

from roll_enhancements.core.chat import ChatMessageTypes, DICE_SOUND, MessageStore, apply_roll_mode, get_speaker
from roll_enhancements.core.constants import MODULE_NAME, localize
from roll_enhancements.core.models import ChatMessage
from roll_enhancements.core.utils import merge_object
from roll_enhancements.modules.dice import DiceRoller, RollResult
from roll_enhancements.modules.items import Item
from .parts import DamagePart

logger = logging.getLogger(__name__)

# Options that steer the roll and are never copied into the payload
CONTROL_OPTIONS = ('messageData', 'chatMessage', 'fastForward', 'rollMode')


class DiceAnimator(ABC):
    """Optional 3D dice presentation."""

    @abstractmethod
    def show_for_roll(self, roll: RollResult, user: str, synchronize: bool,
                      whisper: Optional[List[str]], blind: bool) -> None:
        """Animate one roll; returns when the animation has finished."""


def build_damage_message(item: Item, content: str, flavor: str, parts: Sequence[DamagePart],
                         critical: bool, roll_mode: str, options: Mapping[str, Any],
                         user_id: str, gm_user_ids: List[str], dice: DiceRoller) -> Dict[str, Any]:
    """
    Assemble the payload for a combined damage message.

    Caller ``options`` are merged without replacing anything already in the
    payload; ``options['messageData']`` is merged afterwards and does replace.

    Args:
        item: Item the damage was rolled for
        content: Rendered damage card
        flavor: Message title
        parts: Rolled parts, in order
        critical: Whether the damage was critical
        roll_mode: Visibility of the message
        options: Caller options
        user_id: User making the roll
        gm_user_ids: Users with the GM role
        dice: Roller used for the decoy roll

    Returns:
        Message payload ready for the message store
    """
    decoy_roll = dice.roll('0')

    message_data = {
        'user': user_id,
        'content': content,
        'flavor': flavor,
        'roll': decoy_roll.to_dict(),
        'speaker': get_speaker(item.actor),
        'sound': DICE_SOUND,
        'type': ChatMessageTypes.ROLL,
        'flags': {
            'dnd5e': {'roll': {'type': 'damage', 'itemId': item.id}},
            MODULE_NAME: {'rolls': [part.roll.to_dict() for part in parts]},
        },
    }

    if critical:
        message_data['flavor'] += f" ({localize('Critical')})"
        message_data['flags']['dnd5e']['roll']['critical'] = True

    apply_roll_mode(message_data, roll_mode, user_id, gm_user_ids)

    caller_options = {key: value for key, value in options.items() if key not in CONTROL_OPTIONS}
    merge_object(message_data, caller_options, insert_keys=True, overwrite=False)
    merge_object(message_data, options.get('messageData') or {})

    return message_data


def animate_parts(animator: DiceAnimator, parts: Sequence[DamagePart], user: str,
                  message_data: Mapping[str, Any]) -> None:
    """
    Animate every part at once and wait for all of them.

    Animation failures are logged and never raised.
    """
    if not parts:
        return

    with ThreadPoolExecutor(max_workers=len(parts), thread_name_prefix='dice-animation') as pool:
        futures = [
            pool.submit(
                animator.show_for_roll,
                part.roll,
                user,
                True,
                message_data.get('whisper'),
                bool(message_data.get('blind', False))
            )
            for part in parts
        ]
        wait(futures)

    for part, future in zip(parts, futures):
        error = future.exception()
        if error is not None:
            logger.warning(f"Dice animation failed for {part.roll.notation}: {error}")


def publish_damage_message(message_data: Dict[str, Any], parts: Sequence[DamagePart],
                           messages: MessageStore, animator: Optional[DiceAnimator] = None) -> ChatMessage:
    """
    Animate the parts (if an animator is available), then create the message.

    Returns:
        The created ChatMessage
    """
    if animator is not None:
        animate_parts(animator, parts, message_data.get('user'), message_data)
    return messages.create(message_data)
