"""
Bonus/critical dialog for damage rolls.

When the configured modifier key is held, the user is asked once for the
whole damage roll: critical or normal, an optional situational bonus, and
the roll mode. Dismissing the dialog cancels the damage roll.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from roll_enhancements.core.config import ROLL_MODES
from roll_enhancements.core.constants import localize
from roll_enhancements.modules.items import RollEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DialogResult:
    critical: bool
    bonus: Optional[str]
    roll_mode: str


class DamageDialog(ABC):
    """A blocking prompt for damage roll options."""

    @abstractmethod
    def prompt(self, title: str, roll_mode: str,
               placement: Optional[Dict[str, int]] = None) -> Optional[DialogResult]:
        """
        Ask for damage roll options.

        Args:
            title: Dialog title
            roll_mode: Pre-selected roll mode
            placement: Optional {'top', 'left'} position hint

        Returns:
            The chosen options, or None if the dialog was dismissed
        """


def should_show_dialog(event: Optional[RollEvent], modifier_key: str) -> bool:
    """Whether the triggering interaction asks for the damage dialog."""
    return event is not None and event.pressed(modifier_key)


def dialog_placement(event: Optional[RollEvent]) -> Dict[str, int]:
    """Position hint that opens the dialog just above the pointer."""
    placement = {}
    if event is not None and event.client_y is not None:
        placement['top'] = max(event.client_y - 80, 0)
    if event is not None and event.client_x is not None:
        placement['left'] = event.client_x
    return placement


class StaticDamageDialog(DamageDialog):
    """
    Answers every prompt with preset options.

    Used by non-interactive front ends (the HTTP API) and tests. ``prompts``
    records each title the dialog was shown with.
    """

    def __init__(self, critical: bool = False, bonus: Optional[str] = None,
                 roll_mode: Optional[str] = None, cancel: bool = False):
        self.critical = critical
        self.bonus = bonus
        self.roll_mode = roll_mode
        self.cancel = cancel
        self.prompts: List[str] = []

    def prompt(self, title, roll_mode, placement=None):
        self.prompts.append(title)
        if self.cancel:
            return None
        return DialogResult(
            critical=self.critical,
            bonus=self.bonus,
            roll_mode=self.roll_mode or roll_mode
        )


class ConsoleDamageDialog(DamageDialog):
    """Interactive prompt on the terminal."""

    def __init__(self, input_func: Callable[[str], str] = input,
                 output: Callable[[str], None] = print):
        self.input = input_func
        self.output = output

    def prompt(self, title, roll_mode, placement=None):
        self.output(title)
        try:
            choice = self.input(
                f"[c] {localize('CriticalHit')}  [n] {localize('Normal')}  [q] cancel (default n): "
            ).strip().lower()
            if choice in ('q', 'quit', 'cancel'):
                return None

            bonus = self.input(f"{localize('RollSituationalBonus')} ").strip() or None

            mode = self.input(f"Roll mode {'/'.join(ROLL_MODES)} (default {roll_mode}): ").strip()
        except EOFError:
            # Closed input is a dismissed dialog
            return None

        if mode and mode not in ROLL_MODES:
            logger.warning(f"Unknown roll mode '{mode}', keeping {roll_mode}")
            mode = ''

        return DialogResult(
            critical=choice in ('c', 'crit', 'critical'),
            bonus=bonus,
            roll_mode=mode or roll_mode
        )
