"""
Modifier key state.

``modifiers`` is the process-wide record of which modifier keys are held
while an item is used. Roll primitives read the ``RollEvent`` they are given;
callers that chain several rolls take one ``capture_modifiers()`` snapshot up
front so every roll in the chain sees the same keys.
"""

import copy
from dataclasses import dataclass
from typing import Iterable, Optional

# Setting values use the host's key names
KEY_ATTRIBUTES = {
    'shiftKey': 'shift_key',
    'altKey': 'alt_key',
    'ctrlKey': 'ctrl_key',
    'metaKey': 'meta_key',
}


@dataclass
class RollEvent:
    """Modifier keys (and pointer position) of the interaction that triggered a roll."""
    shift_key: bool = False
    alt_key: bool = False
    ctrl_key: bool = False
    meta_key: bool = False
    client_x: Optional[int] = None
    client_y: Optional[int] = None

    @staticmethod
    def from_keys(keys: Iterable[str], client_x: Optional[int] = None,
                  client_y: Optional[int] = None) -> 'RollEvent':
        """
        Build an event from held key names.

        Raises:
            ValueError: If a key name is unknown
        """
        event = RollEvent(client_x=client_x, client_y=client_y)
        for key in keys:
            event.press(key)
        return event

    def pressed(self, key: str) -> bool:
        """Whether ``key`` (e.g. 'shiftKey') is held."""
        attribute = KEY_ATTRIBUTES.get(key)
        return bool(attribute and getattr(self, attribute))

    def press(self, key: str) -> None:
        if key not in KEY_ATTRIBUTES:
            raise ValueError(f"Unknown modifier key '{key}'")
        setattr(self, KEY_ATTRIBUTES[key], True)

    def release(self, key: str) -> None:
        if key not in KEY_ATTRIBUTES:
            raise ValueError(f"Unknown modifier key '{key}'")
        setattr(self, KEY_ATTRIBUTES[key], False)

    @property
    def advantage(self) -> bool:
        return self.alt_key

    @property
    def disadvantage(self) -> bool:
        return self.ctrl_key or self.meta_key


modifiers = RollEvent()


def capture_modifiers() -> RollEvent:
    """Snapshot of the current modifier state, detached from later key changes."""
    return copy.deepcopy(modifiers)
