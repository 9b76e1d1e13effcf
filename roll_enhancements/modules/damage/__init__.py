"""
Damage module - per-part damage rolls combined into one message.

Rolling damage for an item rolls each formula of the selected formula group
separately (keeping its damage type), optionally asks for a critical /
situational bonus through a dialog, and posts a single chat message carrying
every part.

Usage:
    parts = engine.items.roll_damage(item, formula_group=0, options={'rollMode': 'gmroll'})
    for part in parts:
        print(part.flavor, part.roll.total)
"""

from typing import List

from ..base import Module
from roll_enhancements.modules.items import ItemRoller
from .aggregator import DamageAggregationMiddleware
from .bonus import roll_bonus_part, situational_bonus_label
from .dialog import DamageDialog, DialogResult, StaticDamageDialog, ConsoleDamageDialog
from .formula_groups import initialize_formula_groups, get_formula_group, resolve_formula_group
from .messages import DiceAnimator, build_damage_message, publish_damage_message
from .parts import DamagePart, DamageRollContext, damage_type_label, roll_damage_parts
from .renderer import render_damage_parts


def patch_item_roll_damage(roller: ItemRoller, engine) -> bool:
    """
    Install damage aggregation over ``roller.roll_damage``.

    Returns:
        True if installed, False if it already was
    """
    return roller.roll_damage.use(DamageAggregationMiddleware(engine))


class DamageModule(Module):
    """Per-part damage rolls."""

    @property
    def name(self) -> str:
        return "damage"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Rolls each damage formula separately and posts them as one message"

    def dependencies(self) -> List[str]:
        return ['dice']

    def initialize(self, engine) -> None:
        patch_item_roll_damage(engine.items, engine)


__all__ = [
    'DamageModule', 'patch_item_roll_damage', 'DamageAggregationMiddleware',
    'DamageDialog', 'DialogResult', 'StaticDamageDialog', 'ConsoleDamageDialog',
    'DamagePart', 'DamageRollContext', 'damage_type_label', 'roll_damage_parts',
    'roll_bonus_part', 'situational_bonus_label', 'render_damage_parts',
    'DiceAnimator', 'build_damage_message', 'publish_damage_message',
    'initialize_formula_groups', 'get_formula_group', 'resolve_formula_group',
]
