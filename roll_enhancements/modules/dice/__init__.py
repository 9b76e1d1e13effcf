"""
Dice module - formulas, rolls and the roll.completed event.

Formulas are sums of dice terms (2d6, -1d4), flat numbers and @name roll
data references. Rolls support a leading d20 with advantage/disadvantage,
record a critical threshold on their first die, and render as chat card
fragments.

Usage:
    roller = DiceRoller(seed=42)
    result = roller.roll('1d20+5', critical=19)
    print(result.get_breakdown())  # "1d20: [13] = 13 | modifier: +5 | **Total: 18**"
"""

from typing import List

from ..base import Module, EventTypeDefinition
from .events import roll_completed_event
from .roller import DiceRoller, RollResult, DiceTermResult
from .dice_parser import DiceParser, DiceNotationError, DiceExpression, ParsedRoll


class DiceModule(Module):
    """Dice rolling for every other module."""

    @property
    def name(self) -> str:
        return "dice"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Dice rolling with advantage/disadvantage and critical thresholds"

    def register_event_types(self) -> List[EventTypeDefinition]:
        return [roll_completed_event()]


__all__ = [
    'DiceModule', 'DiceRoller', 'RollResult', 'DiceTermResult',
    'DiceParser', 'DiceNotationError', 'DiceExpression', 'ParsedRoll',
]
