"""
Dice notation parser for item roll formulas.

Supports standard dice notation:
- 1d20 (single die)
- 3d6+5 (multiple dice with modifier)
- 2d8+1d6+3 (complex expressions)
- 1d8-1d4 (subtracted dice)
- 1d8+@mod (roll data references, resolved before parsing)
- 5 (flat values with no dice at all)
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional


@dataclass
class DiceExpression:
    """Parsed dice expression."""
    count: int           # Number of dice
    sides: int           # Number of sides per die
    sign: int = 1        # +1 added, -1 subtracted

    def __str__(self) -> str:
        return f"{self.count}d{self.sides}"


@dataclass
class ParsedRoll:
    """Complete parsed roll expression."""
    dice_groups: List[DiceExpression]  # All dice groups, in formula order
    static_modifier: int               # Sum of every flat term
    original_notation: str             # Normalized input string

    @property
    def formula(self) -> str:
        """Canonical formula, e.g. '2d6 + 1d4 - 2'."""
        parts = []
        for group in self.dice_groups:
            if not parts:
                parts.append(str(group) if group.sign > 0 else f"-{group}")
            else:
                parts.append(f"{'+' if group.sign > 0 else '-'} {group}")
        if self.static_modifier or not parts:
            if not parts:
                parts.append(str(self.static_modifier))
            else:
                op = '+' if self.static_modifier > 0 else '-'
                parts.append(f"{op} {abs(self.static_modifier)}")
        return ' '.join(parts)

    def alter_first(self, multiplier: int = 1, add: int = 0) -> 'ParsedRoll':
        """
        Return a copy whose first dice group count becomes
        ``count * multiplier + add``. Flat-only rolls are returned unchanged.
        """
        if not self.dice_groups:
            return self
        first = self.dice_groups[0]
        altered = replace(first, count=first.count * multiplier + add)
        return replace(self, dice_groups=[altered] + list(self.dice_groups[1:]))

    def alter_all(self, multiplier: int = 1, add: int = 0) -> 'ParsedRoll':
        """Return a copy with every dice group count altered."""
        return replace(self, dice_groups=[
            replace(group, count=group.count * multiplier + add)
            for group in self.dice_groups
        ])

    def __str__(self) -> str:
        return self.original_notation


class DiceNotationError(ValueError):
    """A formula that cannot be parsed."""


class DiceParser:
    """Parser for dice notation."""

    # Regex patterns
    TERM_PATTERN = re.compile(r'([+-])?(?:(\d*)d(\d+)|(\d+))', re.IGNORECASE)
    DATA_PATTERN = re.compile(r'@([a-zA-Z_][\w.]*)')

    MAX_DICE = 100
    MAX_SIDES = 1000

    @classmethod
    def resolve_data(cls, notation: str, data: Optional[Dict[str, Any]]) -> str:
        """
        Replace ``@name`` references with values from roll data.

        Unknown references resolve to 0.
        """
        data = data or {}

        def lookup(match):
            value = data.get(match.group(1), 0)
            return str(value if value is not None else 0)

        return cls.DATA_PATTERN.sub(lookup, notation)

    @classmethod
    def parse(cls, notation: str, data: Optional[Dict[str, Any]] = None) -> ParsedRoll:
        """
        Parse a formula.

        Examples:
            "1d8 + @mod" with {"mod": 3} → 1d8, static_modifier=3
            "2d6-1d4" → 2d6 and -1d4 groups

        Args:
            notation: Dice notation string
            data: Optional roll data for ``@name`` references

        Returns:
            ParsedRoll object

        Raises:
            DiceNotationError: If notation is invalid
        """
        if not notation or not isinstance(notation, str):
            raise DiceNotationError("Notation must be a non-empty string")

        notation = cls.resolve_data(notation, data)

        # Normalize: remove spaces, lowercase, collapse "+-"
        notation = notation.strip().replace(' ', '').lower()
        notation = notation.replace('+-', '-').replace('-+', '-').replace('--', '+')

        if not notation:
            raise DiceNotationError("Notation cannot be empty")

        dice_groups = []
        static_modifier = 0
        position = 0

        for match in cls.TERM_PATTERN.finditer(notation):
            if match.start() != position or (match.group(1) is None and position > 0):
                raise DiceNotationError(f"Unrecognized term in '{notation}' at position {position}")
            position = match.end()
            sign = -1 if match.group(1) == '-' else 1

            if match.group(4) is not None:
                static_modifier += sign * int(match.group(4))
                continue

            count = int(match.group(2)) if match.group(2) else 1
            sides = int(match.group(3))

            if count < 1:
                raise DiceNotationError(f"Dice count must be at least 1, got {count}")
            if count > cls.MAX_DICE:
                raise DiceNotationError(f"Dice count too large (max {cls.MAX_DICE}), got {count}")
            if sides < 2:
                raise DiceNotationError(f"Dice must have at least 2 sides, got {sides}")
            if sides > cls.MAX_SIDES:
                raise DiceNotationError(f"Dice sides too large (max {cls.MAX_SIDES}), got {sides}")

            dice_groups.append(DiceExpression(count, sides, sign))

        if position != len(notation):
            raise DiceNotationError(f"Unrecognized term in '{notation}' at position {position}")

        return ParsedRoll(
            dice_groups=dice_groups,
            static_modifier=static_modifier,
            original_notation=notation
        )

    @classmethod
    def validate(cls, notation: str) -> bool:
        """Whether ``notation`` parses (roll data references count as 0)."""
        try:
            cls.parse(notation)
            return True
        except DiceNotationError:
            return False
