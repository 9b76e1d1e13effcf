"""
Settings and item flag access.

Global settings are stored in the settings table and fall back to the
defaults from ``Config``. Per-item flags live on the item document under a
module scope; writing a flag persists the item.
"""

import logging
from typing import Any, Dict, Optional

from .constants import MODULE_NAME
from .storage import RollStorage

logger = logging.getLogger(__name__)


def resolve_toggle(item_override: Optional[bool], global_setting: bool) -> bool:
    """
    Resolve an auto-roll toggle.

    A per-item override wins whenever it is set (including False); an
    unset override falls back to the global setting.
    """
    if item_override is None:
        return bool(global_setting)
    return bool(item_override)


class SettingsStore:
    """
    Read/write access to global settings and per-item flags.

    Attributes:
        storage: RollStorage holding the settings table and item documents
        defaults: Fallback values for settings that were never stored
    """

    def __init__(self, storage: RollStorage, defaults: Dict[str, Any]):
        self.storage = storage
        self.defaults = dict(defaults)

    def get(self, key: str) -> Any:
        """
        Get a setting value.

        Raises:
            KeyError: If the setting is neither stored nor has a default
        """
        value = self.storage.get_setting(key)
        if value is not None:
            return value
        if key not in self.defaults:
            raise KeyError(f"Unknown setting '{key}'")
        return self.defaults[key]

    def set(self, key: str, value: Any) -> None:
        """
        Store a setting value.

        Raises:
            KeyError: If the setting is unknown
        """
        if key not in self.defaults:
            raise KeyError(f"Unknown setting '{key}'")
        self.storage.set_setting(key, value)
        logger.debug(f"Setting {key} = {value!r}")

    def all(self) -> Dict[str, Any]:
        """Every known setting with its effective value."""
        return {key: self.get(key) for key in self.defaults}

    def get_flag(self, item, key: str, scope: str = MODULE_NAME) -> Optional[Any]:
        """Get a flag from an item, or None when it is unset."""
        return item.get_flag(scope, key)

    def set_flag(self, item, key: str, value: Any, scope: str = MODULE_NAME) -> None:
        """Set a flag on an item and persist the item document."""
        item.set_flag(scope, key, value)
        self.storage.save_item(item.id, item.name, item.to_dict())
        logger.debug(f"Flag {scope}.{key} set on item {item.id}")
