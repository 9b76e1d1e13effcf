"""
Auto-roll module - chained rolls after an item is used.

Using an item posts its card and then, depending on the item's flags and the
global settings, rolls its attack or tool check, its damage and its other
formula.

Per-item flags (scope ``roll-enhancements``):
    autoRollAttack, autoRollDamage, autoRollOther
Global settings:
    autoCheck, autoDamage, autoOther
"""

from typing import List

from ..base import Module
from roll_enhancements.modules.items import ItemRoller
from .orchestrator import AutoRollMiddleware, cast_level, is_critical


def patch_item_roll(roller: ItemRoller, engine) -> bool:
    """
    Install auto rolls over ``roller.roll``.

    Returns:
        True if installed, False if it already was
    """
    return roller.roll.use(AutoRollMiddleware(engine))


class AutoRollModule(Module):
    """Automatic check, damage and formula rolls."""

    @property
    def name(self) -> str:
        return "autoroll"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def display_name(self) -> str:
        return "Auto Roll"

    @property
    def description(self) -> str:
        return "Rolls check, damage and other formula automatically when an item is used"

    def dependencies(self) -> List[str]:
        return ['dice', 'damage']

    def initialize(self, engine) -> None:
        patch_item_roll(engine.items, engine)


__all__ = ['AutoRollModule', 'AutoRollMiddleware', 'patch_item_roll', 'cast_level', 'is_critical']
