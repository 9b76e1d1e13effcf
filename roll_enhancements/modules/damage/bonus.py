"""
Situational bonus part.

A bonus typed into the damage dialog is rolled as one extra part. On a
critical only its first dice term is doubled; the formula parts get the
damage primitive's own critical doubling instead.
"""

from typing import Any, Dict, Optional

from roll_enhancements.core.constants import localize
from roll_enhancements.modules.dice import DiceParser, DiceRoller
from .parts import DamagePart


def situational_bonus_label() -> str:
    """The "Situational Bonus" label without its trailing punctuation."""
    label = localize('RollSituationalBonus').strip()
    if label and not label[-1].isalnum():
        label = label[:-1].rstrip()
    return label


def roll_bonus_part(bonus: Optional[str], critical: bool, dice: DiceRoller,
                    data: Optional[Dict[str, Any]] = None) -> Optional[DamagePart]:
    """
    Roll a situational bonus expression.

    Args:
        bonus: Dice expression from the dialog (empty means no bonus)
        critical: Double the first dice term's count
        dice: Roller to evaluate with
        data: Roll data for ``@name`` references

    Returns:
        The bonus part, or None when there is no bonus

    Raises:
        DiceNotationError: If the bonus is not a valid expression
    """
    if not bonus or not bonus.strip():
        return None

    parsed = DiceParser.parse(bonus, data)
    if critical:
        parsed = parsed.alter_first(2)

    roll = dice.roll(parsed, metadata={'roll_type': 'damage', 'bonus': True, 'critical': critical})
    return DamagePart(roll=roll, flavor=situational_bonus_label())
