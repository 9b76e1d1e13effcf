"""
Auto-roll middleware.

Installed over ``Item.roll``: once the item card is posted, the check,
damage and "other formula" rolls follow automatically. Each toggle is taken
from the item's flag when set, otherwise from the matching global setting.
"""

import copy
import logging
from numbers import Real
from typing import Any, Optional

from roll_enhancements.core.constants import FlagNames, SettingNames
from roll_enhancements.core.settings import resolve_toggle
from roll_enhancements.modules.dice import RollResult
from roll_enhancements.modules.damage import initialize_formula_groups
from roll_enhancements.modules.items import Item, RollCall, RollEvent, RollMiddleware, capture_modifiers

logger = logging.getLogger(__name__)

# (flag, setting) pairs for each stage
TOGGLES = {
    'check': (FlagNames.AUTO_ROLL_ATTACK, SettingNames.AUTO_CHECK),
    'damage': (FlagNames.AUTO_ROLL_DAMAGE, SettingNames.AUTO_DMG),
    'other': (FlagNames.AUTO_ROLL_OTHER, SettingNames.AUTO_OTHER),
}


def is_critical(check: Optional[RollResult]) -> bool:
    """
    Whether a check roll's first rolled face reached its die's critical threshold.

    With advantage or disadvantage that is the first of the two d20 faces,
    not the kept one.
    """
    if check is None or not check.dice or not check.dice[0].rolls:
        return False
    first = check.dice[0]
    if first.critical is None:
        return False
    face = check.advantage_rolls[0] if check.advantage_rolls else first.rolls[0]
    return face >= first.critical


def cast_level(value: Any, item: Item) -> Optional[int]:
    """Spell level from the call when it is a whole number, else the item's own level."""
    if isinstance(value, Real) and not isinstance(value, bool) and float(value).is_integer():
        return int(value)
    return item.level


class AutoRollMiddleware(RollMiddleware):
    """Chains check, damage and other-formula rolls after an item is used."""

    name = 'roll-enhancements.auto-roll'

    def __init__(self, engine):
        self.engine = engine

    def before(self, call: RollCall) -> None:
        settings = self.engine.settings
        call.state['toggles'] = {
            stage: resolve_toggle(settings.get_flag(call.item, flag), settings.get(setting))
            for stage, (flag, setting) in TOGGLES.items()
        }

    def after(self, call: RollCall, result: Any) -> Any:
        toggles = call.state.get('toggles', {})
        if not any(toggles.values()):
            return result
        if not result:
            logger.debug(f"Use of {call.item.name} produced no card, skipping auto rolls")
            return result

        item: Item = call.item
        roller = self.engine.items

        if item.damage is not None:
            initialize_formula_groups(item, self.engine.settings)

        # One snapshot for every chained roll
        event = call.kwargs.get('event')
        event = copy.deepcopy(event) if isinstance(event, RollEvent) else capture_modifiers()

        check = None
        if toggles.get('check'):
            if item.has_attack:
                check = roller.roll_attack(item, event=event)
            elif item.type == 'tool':
                check = roller.roll_tool_check(item, event=event)

        if toggles.get('damage') and item.has_damage:
            roller.roll_damage(
                item,
                critical=is_critical(check),
                event=event,
                spell_level=cast_level(call.kwargs.get('spell_level'), item)
            )

        if toggles.get('other') and item.formula:
            roller.roll_formula(item, event=event)

        return result
