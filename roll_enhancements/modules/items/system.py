"""
Item roll primitives.

ItemRoller owns the host's roll operations for items:

- ``roll``: use the item and post its item card
- ``roll_attack``: d20 attack roll
- ``roll_tool_check``: d20 tool check
- ``roll_formula``: the item's free-form "other" formula
- ``roll_damage``: one damage roll over the item's damage formulae

``roll`` and ``roll_damage`` are ``RollPipeline`` objects so other modules
can install middleware over them instead of replacing them.
"""

import logging
from typing import Any, Callable, Dict, Optional

from markupsafe import Markup

from roll_enhancements.core.chat import ChatMessageTypes, DICE_SOUND, apply_roll_mode, get_speaker
from roll_enhancements.core.constants import SettingNames, localize
from roll_enhancements.core.errors import UnsupportedItemError
from roll_enhancements.core.models import Event
from roll_enhancements.modules.dice import DiceParser, RollResult
from .components import DamageData, Item
from .modifiers import RollEvent
from .pipeline import RollPipeline

logger = logging.getLogger(__name__)


class ItemRoller:
    """
    Roll operations for items.

    Usage:
        roller = ItemRoller(engine)
        message = roller.roll(sword)
        damage = roller.roll_damage(sword, critical=True)
    """

    def __init__(self, engine):
        """
        Initialize the roller.

        Args:
            engine: RollEngine providing dice, settings, messages and the event bus
        """
        self.engine = engine
        self.roll = RollPipeline('Item.roll', self._roll_item)
        self.roll_damage = RollPipeline('Item.rollDamage', self._roll_damage)

    # ========== Item use ==========

    def _roll_item(
        self,
        item: Item,
        spell_level: Optional[int] = None,
        event: Optional[RollEvent] = None,
        configure: Optional[Callable[[Item], Optional[Dict[str, Any]]]] = None,
        create_message: bool = True,
        roll_mode: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Use an item and post its item card.

        Args:
            item: Item being used
            spell_level: Level the spell is cast at
            event: Triggering interaction
            configure: Optional usage dialog; returning None aborts the use
            create_message: Persist the item card
            roll_mode: Visibility of the card (defaults to the rollMode setting)

        Returns:
            The item card payload, or None if the usage dialog was dismissed
        """
        if configure is not None:
            usage = configure(item)
            if usage is None:
                logger.info(f"Use of {item.name} cancelled")
                return None
            spell_level = usage.get('spell_level', spell_level)

        buttons = []
        if item.has_attack:
            buttons.append(('attack', localize('AttackRoll')))
        elif item.type == 'tool':
            buttons.append(('toolCheck', localize('ToolCheck')))
        if item.has_damage:
            buttons.append(('damage', localize('DamageRoll')))
        if item.formula:
            buttons.append(('formula', localize('OtherFormula')))

        content = Markup(
            '<div class="dnd5e chat-card item-card" data-item-id="{}"{}>'
            '<header class="card-header"><h3 class="item-name">{}</h3></header>'
            '<div class="card-buttons">{}</div></div>'
        ).format(
            item.id,
            Markup(' data-spell-level="{}"').format(spell_level) if spell_level is not None else '',
            item.name,
            Markup('').join(
                Markup('<button data-action="{}">{}</button>').format(action, label)
                for action, label in buttons
            )
        )

        message_data = {
            'user': self.engine.user_id,
            'content': str(content),
            'flavor': item.name,
            'speaker': get_speaker(item.actor),
            'type': ChatMessageTypes.OTHER,
            'flags': {'core': {'itemId': item.id, 'spellLevel': spell_level}},
        }
        apply_roll_mode(
            message_data,
            roll_mode or self.engine.settings.get(SettingNames.ROLL_MODE),
            self.engine.user_id,
            self.engine.gm_user_ids
        )

        if create_message:
            self.engine.messages.create(message_data)
        return message_data

    # ========== d20 rolls ==========

    def roll_attack(self, item: Item, event: Optional[RollEvent] = None,
                    options: Optional[Dict[str, Any]] = None) -> Optional[RollResult]:
        """
        Roll an attack for an item with attack capability.

        Alt grants advantage, Ctrl/Meta disadvantage. The first die carries the
        item's critical threshold.

        Returns:
            The attack roll, or None when the item cannot attack
        """
        if not item.has_attack:
            logger.warning(f"{item.name} has no attack to roll")
            return None
        formula = f"1d20 + @mod + {item.attack_bonus}"
        return self._roll_d20(item, formula, 'attack', localize('AttackRoll'),
                              item.critical_threshold, event, options)

    def roll_tool_check(self, item: Item, event: Optional[RollEvent] = None,
                        options: Optional[Dict[str, Any]] = None) -> Optional[RollResult]:
        """Roll a tool check for a tool item."""
        if item.type != 'tool':
            logger.warning(f"{item.name} is not a tool")
            return None
        formula = f"1d20 + @mod + {item.tool_bonus}"
        return self._roll_d20(item, formula, 'tool', localize('ToolCheck'), 20, event, options)

    def _roll_d20(self, item: Item, formula: str, roll_type: str, label: str,
                  critical: int, event: Optional[RollEvent],
                  options: Optional[Dict[str, Any]]) -> RollResult:
        event = event or RollEvent()
        advantage = event.advantage and not event.disadvantage
        disadvantage = event.disadvantage and not event.advantage

        roll = self.engine.dice.roll(
            formula,
            advantage=advantage,
            disadvantage=disadvantage,
            critical=critical,
            data=item.roll_data(),
            metadata={'item_id': item.id, 'roll_type': roll_type}
        )
        self._publish_roll(item, roll_type, roll)
        self._post_roll_message(item, roll, f"{item.name} - {label}", roll_type, options)
        return roll

    # ========== Formula rolls ==========

    def roll_formula(self, item: Item, event: Optional[RollEvent] = None,
                     options: Optional[Dict[str, Any]] = None) -> Optional[RollResult]:
        """Roll the item's free-form "other" formula."""
        if not item.formula:
            logger.warning(f"{item.name} has no other formula")
            return None
        roll = self.engine.dice.roll(
            item.formula,
            data=item.roll_data(),
            metadata={'item_id': item.id, 'roll_type': 'formula'}
        )
        self._publish_roll(item, 'formula', roll)
        self._post_roll_message(item, roll, f"{item.name} - {localize('OtherFormula')}", 'formula', options)
        return roll

    def _roll_damage(
        self,
        item: Item,
        critical: bool = False,
        event: Optional[RollEvent] = None,
        spell_level: Optional[int] = None,
        versatile: bool = False,
        options: Optional[Dict[str, Any]] = None,
        damage: Optional[DamageData] = None
    ) -> Optional[RollResult]:
        """
        Roll all of a damage record's formulae as one roll.

        Args:
            item: Item being rolled
            critical: Double the number of every die
            event: Triggering interaction
            spell_level: Level the spell is cast at (drives level scaling)
            versatile: Use the versatile formula instead of the first part
            options: chatMessage, rollMode, ...
            damage: Damage record to roll instead of the item's own

        Returns:
            The damage roll, or None when there is nothing to roll

        Raises:
            UnsupportedItemError: If the item has no damage record
        """
        options = options or {}
        damage = damage if damage is not None else item.damage
        if damage is None:
            raise UnsupportedItemError(f"You cannot roll damage for {item.name}.")

        formulas = [formula for formula, _ in damage.parts]
        if versatile and damage.versatile and formulas:
            formulas[0] = damage.versatile
        formulas = [f for f in formulas if f and f.strip()]
        if not formulas:
            return None

        if (item.scaling.mode == 'level' and item.scaling.formula
                and spell_level is not None and item.level is not None
                and int(spell_level) > item.level):
            formulas.extend([item.scaling.formula] * (int(spell_level) - item.level))

        parsed = DiceParser.parse(' + '.join(formulas), item.roll_data())
        if critical:
            parsed = parsed.alter_all(2)

        roll = self.engine.dice.roll(
            parsed,
            metadata={
                'item_id': item.id,
                'roll_type': 'damage',
                'damage_types': [damage_type for _, damage_type in damage.parts],
                'critical': critical
            }
        )
        self._publish_roll(item, 'damage', roll)

        title = f"{item.name} - {localize('DamageRoll')}"
        if critical:
            title += f" ({localize('Critical')})"
        self._post_roll_message(item, roll, title, 'damage', options)
        return roll

    # ========== Helpers ==========

    def _publish_roll(self, item: Item, roll_type: str, roll: RollResult) -> None:
        self.engine.event_bus.publish(Event.create(
            event_type='roll.completed',
            item_id=item.id,
            actor_id=self.engine.user_id,
            data={
                'item_id': item.id,
                'roll_type': roll_type,
                'notation': roll.notation,
                'total': roll.total,
                'breakdown': roll.get_breakdown(),
                'natural_20': roll.natural_20,
                'natural_1': roll.natural_1
            }
        ))

    def _post_roll_message(self, item: Item, roll: RollResult, flavor: str,
                           roll_type: str, options: Optional[Dict[str, Any]]) -> None:
        options = options or {}
        if not options.get('chatMessage', True):
            return

        message_data = {
            'user': self.engine.user_id,
            'content': str(roll.render()),
            'flavor': flavor,
            'roll': roll.to_dict(),
            'speaker': get_speaker(item.actor),
            'sound': DICE_SOUND,
            'type': ChatMessageTypes.ROLL,
            'flags': {'dnd5e': {'roll': {'type': roll_type, 'itemId': item.id}}},
        }
        apply_roll_mode(
            message_data,
            options.get('rollMode') or self.engine.settings.get(SettingNames.ROLL_MODE),
            self.engine.user_id,
            self.engine.gm_user_ids
        )
        self.engine.messages.create(message_data)
