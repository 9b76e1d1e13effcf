"""
Items module - rollable item documents and the host roll primitives.
"""

from .components import Item, DamageData, FormulaGroup, Scaling, ITEM_SCHEMA, ATTACK_ACTION_TYPES
from .modifiers import RollEvent, modifiers, capture_modifiers
from .pipeline import RollCall, RollMiddleware, RollPipeline
from .system import ItemRoller

__all__ = [
    'Item', 'DamageData', 'FormulaGroup', 'Scaling', 'ITEM_SCHEMA', 'ATTACK_ACTION_TYPES',
    'RollEvent', 'modifiers', 'capture_modifiers',
    'RollCall', 'RollMiddleware', 'RollPipeline',
    'ItemRoller',
]
