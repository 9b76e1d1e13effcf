"""
Roll engine for Roll Enhancements.

RollEngine wires the storage, event bus, settings, chat log and dice roller
together, loads the modules that hook into the item roll pipelines, and
manages item documents.
"""

import logging
from typing import Any, Dict, List, Optional

import jsonschema

from .chat import MESSAGE_EVENT_SCHEMA, MessageStore
from .config import Config, get_config
from .errors import ItemNotFoundError
from .event_bus import EventBus
from .models import Event
from .module_loader import ModuleLoader
from .notifications import NOTIFICATION_EVENT_SCHEMA, Notifier
from .result import ErrorCode, Result
from .settings import SettingsStore
from .storage import RollStorage
from ..modules.dice import DiceRoller
from ..modules.items import Item, ItemRoller

logger = logging.getLogger(__name__)

ITEM_IMPORTED_SCHEMA = {
    "type": "object",
    "properties": {
        "item_id": {"type": "string"},
        "name": {"type": "string"}
    },
    "required": ["item_id", "name"]
}


class RollEngine:
    """
    Central coordinator for item rolls.

    Attributes:
        storage: RollStorage for settings, items, messages and events
        event_bus: EventBus for roll, message and notification events
        settings: SettingsStore for global settings and item flags
        notifications: Notifier for user-visible notices
        messages: MessageStore for the chat log
        dice: DiceRoller shared by every roll
        items: ItemRoller exposing the item roll pipelines
        dialog: Damage dialog used when the modifier key is held (optional)
        animator: Dice animator for damage parts (optional)

    Usage:
        engine = RollEngine('rolls.db')
        item = engine.add_item({'name': 'Longsword', 'type': 'weapon', ...}).data
        engine.items.roll(engine.get_item(item['id']))
    """

    def __init__(self, db_path: Optional[str] = None, config: Optional[Config] = None,
                 seed: Optional[int] = None, dialog=None, animator=None,
                 modules: Optional[List] = None):
        """
        Initialize the engine.

        Args:
            db_path: SQLite database path (default from config; ':memory:' for tests)
            config: Configuration (default: global config)
            seed: Dice seed (default from config)
            dialog: DamageDialog implementation
            animator: DiceAnimator implementation
            modules: Module names or instances to load (default: all bundled modules)
        """
        self.config = config or get_config()

        self.storage = RollStorage(db_path or self.config.db_path)
        self.storage.initialize()

        self.event_bus = EventBus(self.storage)
        self.event_bus.register_event_type('message.created', MESSAGE_EVENT_SCHEMA)
        self.event_bus.register_event_type('notification.created', NOTIFICATION_EVENT_SCHEMA)
        self.event_bus.register_event_type('item.imported', ITEM_IMPORTED_SCHEMA)

        self.settings = SettingsStore(self.storage, self.config.setting_defaults())
        self.notifications = Notifier(self.event_bus)
        self.messages = MessageStore(self.storage, self.event_bus)
        self.dice = DiceRoller(seed if seed is not None else self.config.seed)

        self.user_id = self.config.user_id
        self.gm_user_ids = list(self.config.gm_user_ids)
        self.dialog = dialog
        self.animator = animator

        self.items = ItemRoller(self)

        self._modules: Dict[str, Any] = {}
        self._load_modules(modules)

    def _load_modules(self, modules: Optional[List]) -> None:
        """Register every module's event types, then let it hook into the engine."""
        for module in ModuleLoader().load_modules(modules):
            self._modules[module.name] = module
            for event_type in module.register_event_types():
                self.event_bus.register_event_type(event_type.type, event_type.data_schema)
            module.initialize(self)

    def get_module(self, module_name: str) -> Optional[Any]:
        """Get a loaded module by name."""
        return self._modules.get(module_name)

    # ========== Items ==========

    def add_item(self, data: Dict[str, Any]) -> Result:
        """
        Import an item document.

        Args:
            data: Item document (see ITEM_SCHEMA)

        Returns:
            Result with the stored item document or error
        """
        try:
            item = Item.from_dict(data)
        except jsonschema.ValidationError as e:
            return Result.fail(f"Invalid item: {e.message}", ErrorCode.SCHEMA_VALIDATION_FAILED)

        document = item.to_dict()
        if not self.storage.save_item(item.id, item.name, document):
            return Result.fail("Failed to save item", ErrorCode.STORAGE_ERROR)

        self.event_bus.publish(Event.create(
            event_type='item.imported',
            item_id=item.id,
            actor_id=self.user_id,
            data={'item_id': item.id, 'name': item.name}
        ))
        logger.info(f"Imported item {item.name} ({item.id})")
        return Result.ok(document)

    def get_item(self, item_id: str) -> Item:
        """
        Load an item by ID.

        Raises:
            ItemNotFoundError: If no such item exists
        """
        data = self.storage.get_item(item_id)
        if data is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        return Item.from_dict(data)

    def list_items(self) -> List[Item]:
        return [Item.from_dict(data) for data in self.storage.list_items()]

    def close(self) -> None:
        """Close the database connection."""
        self.storage.close()
