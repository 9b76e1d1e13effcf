"""
Item documents for the items module.

Provides the records rolled by the item primitives:
- Item: a rollable item (weapon, spell, tool, ...)
- DamageData: the item's damage formula list and versatile formula
- Scaling: how damage grows when a spell is cast at a higher level
- FormulaGroup: a labelled subset of damage formula slots

Item documents are plain JSON validated against ``ITEM_SCHEMA``.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import jsonschema

from roll_enhancements.core.models import generate_id

ATTACK_ACTION_TYPES = ('mwak', 'rwak', 'msak', 'rsak')

DamagePair = Tuple[str, Optional[str]]


ITEM_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string", "minLength": 1},
        "type": {
            "type": "string",
            "description": "Item category",
            "examples": ["weapon", "spell", "tool", "consumable", "feat", "equipment"]
        },
        "actor": {
            "type": ["string", "null"],
            "description": "Name of the owning character, used as message speaker"
        },
        "level": {
            "type": ["integer", "null"],
            "minimum": 0,
            "maximum": 9,
            "description": "Base spell level"
        },
        "action_type": {
            "type": ["string", "null"],
            "description": "mwak, rwak, msak, rsak, save, heal, util, other"
        },
        "attack_bonus": {"type": "integer", "default": 0},
        "critical_threshold": {"type": "integer", "minimum": 2, "maximum": 20, "default": 20},
        "ability_mod": {"type": "integer", "default": 0},
        "tool_bonus": {"type": "integer", "default": 0},
        "damage": {
            "type": ["object", "null"],
            "properties": {
                "parts": {
                    "type": "array",
                    "items": {
                        "type": "array",
                        "prefixItems": [
                            {"type": "string"},
                            {"type": ["string", "null"]}
                        ],
                        "minItems": 1,
                        "maxItems": 2
                    }
                },
                "versatile": {"type": "string", "default": ""}
            },
            "required": ["parts"]
        },
        "scaling": {
            "type": "object",
            "properties": {
                "mode": {"type": "string", "enum": ["none", "level"]},
                "formula": {"type": "string"}
            }
        },
        "formula": {
            "type": "string",
            "description": "Free-form 'other' formula",
            "default": ""
        },
        "flags": {
            "type": "object",
            "description": "Flags keyed by module scope",
            "additionalProperties": {"type": "object"}
        }
    },
    "required": ["name", "type"]
}


@dataclass(frozen=True)
class FormulaGroup:
    """A labelled, ordered subset of an item's damage formula slots."""
    label: str
    formula_set: Tuple[int, ...]

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'FormulaGroup':
        return FormulaGroup(
            label=data.get('label', ''),
            formula_set=tuple(int(i) for i in data.get('formulaSet', []))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'formulaSet': list(self.formula_set)}


@dataclass(frozen=True)
class DamageData:
    """
    An item's damage formulae.

    Frozen: the damage roll works on throwaway single-part views built with
    ``single_part()`` instead of editing the item's list.
    """
    parts: Tuple[DamagePair, ...] = ()
    versatile: str = ''

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'DamageData':
        parts = []
        for part in data.get('parts', []):
            formula = part[0]
            damage_type = part[1] if len(part) > 1 else None
            parts.append((formula, damage_type))
        return DamageData(parts=tuple(parts), versatile=data.get('versatile', '') or '')

    def single_part(self, formula: str, damage_type: Optional[str]) -> 'DamageData':
        """A view of this damage data holding only one formula."""
        return DamageData(parts=((formula, damage_type),), versatile=self.versatile)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parts': [[formula, damage_type] for formula, damage_type in self.parts],
            'versatile': self.versatile
        }


@dataclass(frozen=True)
class Scaling:
    mode: str = 'none'
    formula: str = ''


@dataclass
class Item:
    """
    A rollable item.

    Attributes:
        id: Unique identifier
        name: Display name
        type: Item category (weapon, spell, tool, ...)
        actor: Owning character name (message speaker)
        level: Base spell level, if a spell
        action_type: Action type; attack types give attack capability
        attack_bonus: Flat bonus added to attack rolls
        critical_threshold: Lowest d20 face that counts as a critical hit
        ability_mod: Ability modifier, available to formulas as ``@mod``
        tool_bonus: Flat bonus added to tool checks
        damage: Damage formulae, or None when the item cannot deal damage
        scaling: Higher-level spell scaling
        formula: Free-form "other" formula
        flags: Module-scoped flags
    """
    name: str
    type: str
    id: str = field(default_factory=lambda: generate_id('item'))
    actor: Optional[str] = None
    level: Optional[int] = None
    action_type: Optional[str] = None
    attack_bonus: int = 0
    critical_threshold: int = 20
    ability_mod: int = 0
    tool_bonus: int = 0
    damage: Optional[DamageData] = None
    scaling: Scaling = field(default_factory=Scaling)
    formula: str = ''
    flags: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Item':
        """
        Build an item from a JSON document.

        Raises:
            jsonschema.ValidationError: If the document is invalid
        """
        jsonschema.validate(data, ITEM_SCHEMA)
        damage = data.get('damage')
        scaling = data.get('scaling') or {}
        item = Item(
            name=data['name'],
            type=data['type'],
            actor=data.get('actor'),
            level=data.get('level'),
            action_type=data.get('action_type'),
            attack_bonus=data.get('attack_bonus', 0),
            critical_threshold=data.get('critical_threshold', 20),
            ability_mod=data.get('ability_mod', 0),
            tool_bonus=data.get('tool_bonus', 0),
            damage=DamageData.from_dict(damage) if damage is not None else None,
            scaling=Scaling(mode=scaling.get('mode', 'none'), formula=scaling.get('formula', '')),
            formula=data.get('formula', '') or '',
            flags=copy.deepcopy(data.get('flags', {}))
        )
        if data.get('id'):
            item.id = data['id']
        return item

    @property
    def has_attack(self) -> bool:
        return self.action_type in ATTACK_ACTION_TYPES

    @property
    def has_damage(self) -> bool:
        return bool(self.damage and self.damage.parts)

    @property
    def is_versatile(self) -> bool:
        return bool(self.damage and self.damage.versatile)

    def roll_data(self) -> Dict[str, Any]:
        """Values available to formulas through ``@name`` references."""
        return {
            'mod': self.ability_mod,
            'prof': 0,
            'level': self.level or 0,
        }

    def get_flag(self, scope: str, key: str) -> Optional[Any]:
        return self.flags.get(scope, {}).get(key)

    def set_flag(self, scope: str, key: str, value: Any) -> None:
        self.flags.setdefault(scope, {})[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON document accepted by ``from_dict``."""
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'actor': self.actor,
            'level': self.level,
            'action_type': self.action_type,
            'attack_bonus': self.attack_bonus,
            'critical_threshold': self.critical_threshold,
            'ability_mod': self.ability_mod,
            'tool_bonus': self.tool_bonus,
            'damage': self.damage.to_dict() if self.damage is not None else None,
            'scaling': {'mode': self.scaling.mode, 'formula': self.scaling.formula},
            'formula': self.formula,
            'flags': copy.deepcopy(self.flags)
        }
