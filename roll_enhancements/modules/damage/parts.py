"""
Damage parts.

Each formula of a damage roll is rolled on its own so every result keeps its
damage type. The single-formula damage primitive is handed a one-formula view
of the item's damage record; the item itself is never edited.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from roll_enhancements.modules.dice import RollResult
from roll_enhancements.modules.items import Item, RollEvent, DamageData
from roll_enhancements.modules.items.components import DamagePair

logger = logging.getLogger(__name__)

DAMAGE_TYPES = {
    'acid': 'Acid',
    'bludgeoning': 'Bludgeoning',
    'cold': 'Cold',
    'fire': 'Fire',
    'force': 'Force',
    'lightning': 'Lightning',
    'necrotic': 'Necrotic',
    'piercing': 'Piercing',
    'poison': 'Poison',
    'psychic': 'Psychic',
    'radiant': 'Radiant',
    'slashing': 'Slashing',
    'thunder': 'Thunder',
}

HEALING_TYPES = {
    'healing': 'Healing',
    'temphp': 'Healing (Temporary)',
}

RollSingle = Callable[[Dict[str, Any]], Optional[RollResult]]


@dataclass(frozen=True)
class DamagePart:
    """One independently rolled damage formula."""
    roll: RollResult
    flavor: str
    damage_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flavor': self.flavor,
            'damage_type': self.damage_type,
            'roll': self.roll.to_dict()
        }


@dataclass(frozen=True)
class DamageRollContext:
    """Arguments shared by every part of one damage roll."""
    critical: bool = False
    event: Optional[RollEvent] = None
    spell_level: Optional[int] = None
    versatile: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)

    def part_kwargs(self, damage: DamageData, first: bool = True) -> Dict[str, Any]:
        """
        Keyword arguments for one part's primitive call; never posts a message.

        Versatile replacement and spell scaling apply to the first part only.
        """
        options = dict(self.options)
        options['chatMessage'] = False
        return {
            'critical': self.critical,
            'event': self.event,
            'spell_level': self.spell_level if first else None,
            'versatile': self.versatile and first,
            'options': options,
            'damage': damage,
        }


def damage_type_label(damage_type: Optional[str],
                      damage_types: Mapping[str, str] = DAMAGE_TYPES,
                      healing_types: Mapping[str, str] = HEALING_TYPES) -> str:
    """Label for a damage type; unknown types get an empty label."""
    if damage_type is None:
        return ''
    return damage_types.get(damage_type) or healing_types.get(damage_type) or ''


def roll_damage_parts(item: Item, pairs: Sequence[DamagePair], roll_single: RollSingle,
                      context: DamageRollContext) -> List[DamagePart]:
    """
    Roll each damage pair separately, in order.

    Args:
        item: Item being rolled
        pairs: ``(formula, damage_type)`` pairs to roll
        roll_single: Single-formula damage primitive, called with keyword arguments
        context: Arguments shared by every part

    Returns:
        One DamagePart per pair that produced a roll
    """
    base = item.damage if item.damage is not None else DamageData()
    parts = []

    for index, (formula, damage_type) in enumerate(pairs):
        damage = base.single_part(formula, damage_type)
        roll = roll_single(context.part_kwargs(damage, first=index == 0))
        if roll is None:
            logger.debug(f"No roll for part '{formula}' of {item.name}, skipping")
            continue
        parts.append(DamagePart(roll=roll, flavor=damage_type_label(damage_type), damage_type=damage_type))

    return parts
