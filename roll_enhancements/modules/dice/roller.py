"""
Rolling parsed formulas.

A RollResult keeps every die face per term, so it can be rendered as a chat
card fragment, shown to a dice animator, or checked against the critical
threshold of its first die.
"""

import random
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Union

from markupsafe import Markup

from .dice_parser import DiceParser, ParsedRoll, DiceExpression


@dataclass
class DiceTermResult:
    """Faces rolled for one dice term."""
    expression: DiceExpression
    rolls: List[int]
    critical: Optional[int] = None  # Face at or above which this die crits

    @property
    def total(self) -> int:
        return self.expression.sign * sum(self.rolls)

    @property
    def is_d20(self) -> bool:
        return self.expression.sides == 20

    def __str__(self) -> str:
        sign = '-' if self.expression.sign < 0 else ''
        return f"{sign}{self.expression}: [{','.join(map(str, self.rolls))}] = {self.total}"


@dataclass
class RollResult:
    """A rolled formula."""
    notation: str
    dice: List[DiceTermResult]
    static_modifier: int
    advantage: bool = False
    disadvantage: bool = False
    advantage_rolls: Optional[List[int]] = None  # Both d20 faces when advantage/disadvantage applied
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(term.total for term in self.dice) + self.static_modifier

    def _d20_faces(self) -> List[int]:
        faces = list(self.advantage_rolls or [])
        for index, term in enumerate(self.dice):
            if term.is_d20 and not (index == 0 and self.advantage_rolls):
                faces.extend(term.rolls)
        return faces

    @property
    def natural_20(self) -> bool:
        return 20 in self._d20_faces()

    @property
    def natural_1(self) -> bool:
        return 1 in self._d20_faces()

    def get_breakdown(self) -> str:
        """
        One-line summary, e.g.
        ``1d20 with advantage: [7, 15] → kept 15 | modifier: +5 | **Total: 20**``.
        """
        parts = []
        for index, term in enumerate(self.dice):
            if index == 0 and self.advantage_rolls:
                mode = 'advantage' if self.advantage else 'disadvantage'
                faces = ', '.join(map(str, self.advantage_rolls))
                parts.append(f"{term.expression} with {mode}: [{faces}] → kept {term.rolls[0]}")
            else:
                parts.append(str(term))
        if self.static_modifier:
            parts.append(f"modifier: {self.static_modifier:+d}")
        parts.append(f"**Total: {self.total}**")
        if self.natural_20:
            parts.append("natural 20")
        elif self.natural_1:
            parts.append("natural 1")
        return " | ".join(parts)

    def render(self, total_attributes: Optional[Dict[str, str]] = None) -> Markup:
        """
        Chat card fragment for this roll.

        Args:
            total_attributes: Extra attributes for the ``dice-total`` element
                (values are escaped)
        """
        attrs = Markup('').join(
            Markup(' {}="{}"').format(name, value)
            for name, value in (total_attributes or {}).items()
        )
        tooltip = Markup('').join(
            Markup(
                '<section class="tooltip-part"><div class="dice">'
                '<header class="part-header"><span class="part-formula">{}</span>'
                '<span class="part-total">{}</span></header>'
                '<ol class="dice-rolls">{}</ol></div></section>'
            ).format(
                str(term.expression),
                term.total,
                Markup('').join(
                    Markup('<li class="roll die d{}">{}</li>').format(term.expression.sides, face)
                    for face in term.rolls
                )
            )
            for term in self.dice
        )
        return Markup(
            '<div class="dice-roll"><div class="dice-result">'
            '<div class="dice-formula">{}</div>'
            '<div class="dice-tooltip">{}</div>'
            '<h4 class="dice-total"{}>{}</h4>'
            '</div></div>'
        ).format(self.notation, tooltip, attrs, self.total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'notation': self.notation,
            'total': self.total,
            'breakdown': self.get_breakdown(),
            'advantage': self.advantage,
            'disadvantage': self.disadvantage,
            'advantage_rolls': self.advantage_rolls,
            'natural_20': self.natural_20,
            'natural_1': self.natural_1,
            'dice': [
                {
                    'expression': str(term.expression),
                    'sign': term.expression.sign,
                    'rolls': term.rolls,
                    'total': term.total,
                    'critical': term.critical
                }
                for term in self.dice
            ],
            'static_modifier': self.static_modifier,
            'metadata': self.metadata
        }


class DiceRoller:
    """
    Seedable roller shared by every roll of an engine.

    Usage:
        roller = DiceRoller(seed=42)
        roller.roll("1d20 + @mod", advantage=True, critical=19, data={'mod': 5})
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = random.Random(seed)

    def set_seed(self, seed: int) -> None:
        self.seed = seed
        self.rng = random.Random(seed)

    def roll(
        self,
        notation: Union[str, ParsedRoll],
        advantage: bool = False,
        disadvantage: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
        critical: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> RollResult:
        """
        Roll a formula.

        Args:
            notation: Formula (e.g., "1d20 + @mod") or an already parsed roll
            advantage: Roll a leading single d20 twice, keep the higher
            disadvantage: Roll a leading single d20 twice, keep the lower
            metadata: Context stored on the result (roll_type, item_id...)
            critical: Critical threshold recorded on the first dice term
            data: Roll data for ``@name`` references

        Raises:
            DiceNotationError: If the formula is invalid
            ValueError: If both advantage and disadvantage are requested
        """
        if advantage and disadvantage:
            raise ValueError("Cannot have both advantage and disadvantage")

        parsed = notation if isinstance(notation, ParsedRoll) else DiceParser.parse(notation, data)

        terms = []
        advantage_rolls = None
        for index, expression in enumerate(parsed.dice_groups):
            if index == 0 and (advantage or disadvantage) and expression.count == 1 and expression.sides == 20:
                advantage_rolls = self._faces(2, 20)
                rolls = [max(advantage_rolls) if advantage else min(advantage_rolls)]
            else:
                rolls = self._faces(expression.count, expression.sides)
            terms.append(DiceTermResult(expression, rolls, critical if index == 0 else None))

        return RollResult(
            notation=parsed.formula,
            dice=terms,
            static_modifier=parsed.static_modifier,
            advantage=advantage,
            disadvantage=disadvantage,
            advantage_rolls=advantage_rolls,
            metadata=metadata or {}
        )

    def _faces(self, count: int, sides: int) -> List[int]:
        return [self.rng.randint(1, sides) for _ in range(count)]
