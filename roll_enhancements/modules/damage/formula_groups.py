"""
Formula groups.

A formula group is a labelled, ordered list of indices into an item's damage
formula list. Groups are stored in the item's ``formulaGroups`` flag; an item
that has never had groups gets a single "Default" group holding every slot.
"""

import logging
from typing import List, Optional, Tuple

from roll_enhancements.core.constants import FlagNames, format_label, localize
from roll_enhancements.core.errors import EmptyGroupError, InvalidGroupError
from roll_enhancements.core.notifications import Notifier
from roll_enhancements.core.settings import SettingsStore
from roll_enhancements.modules.items import Item, FormulaGroup
from roll_enhancements.modules.items.components import DamagePair

logger = logging.getLogger(__name__)


def initialize_formula_groups(item: Item, settings: SettingsStore) -> List[FormulaGroup]:
    """
    Make sure the item has formula groups, creating the default group if not.

    Returns:
        The item's formula groups
    """
    stored = settings.get_flag(item, FlagNames.FORMULA_GROUPS)
    if stored is None:
        slots = len(item.damage.parts) if item.damage else 0
        default = FormulaGroup(label=localize('FormulaGroupDefault'), formula_set=tuple(range(slots)))
        stored = [default.to_dict()]
        settings.set_flag(item, FlagNames.FORMULA_GROUPS, stored)
        logger.debug(f"Created default formula group for {item.name} with {slots} slot(s)")
    return [FormulaGroup.from_dict(group) for group in stored]


def get_formula_group(item: Item, index: int, settings: SettingsStore) -> FormulaGroup:
    """
    Look up a stored formula group by zero-based index.

    Raises:
        InvalidGroupError: If there is no group at ``index``
    """
    stored = settings.get_flag(item, FlagNames.FORMULA_GROUPS) or []
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(stored):
        raise InvalidGroupError(format_label('InvalidGroupError', index=index))
    return FormulaGroup.from_dict(stored[index])


def resolve_formula_group(item: Item, index: int, settings: SettingsStore,
                          notifier: Optional[Notifier] = None) -> Tuple[FormulaGroup, List[DamagePair]]:
    """
    Resolve a formula group to the damage pairs it selects.

    Slots that the item's damage list does not have are skipped. When every
    slot is missing the user is notified and the call fails.

    Args:
        item: Item to resolve against
        index: Zero-based formula group index
        settings: Flag store holding the groups
        notifier: Channel for the user-visible error

    Returns:
        The group and its ``(formula, damage_type)`` pairs, in group order

    Raises:
        InvalidGroupError: If there is no group at ``index``
        EmptyGroupError: If none of the group's slots exist
    """
    group = get_formula_group(item, index, settings)
    available = item.damage.parts if item.damage else ()

    pairs = [available[slot] for slot in group.formula_set if 0 <= slot < len(available)]
    skipped = len(group.formula_set) - len(pairs)
    if skipped:
        logger.debug(f"Formula group '{group.label}' on {item.name}: skipped {skipped} missing slot(s)")

    if not pairs:
        message = format_label('GroupEmptyError', label=group.label)
        if notifier is not None:
            notifier.error(message)
        raise EmptyGroupError(message)

    return group, pairs
