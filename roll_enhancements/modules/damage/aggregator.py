"""
Damage aggregation middleware.

Installed over ``Item.rollDamage``: instead of one roll for all formulae, the
selected formula group's formulae are rolled one at a time through the rest
of the pipeline, an optional situational bonus is added, and everything is
posted as a single message. The call returns the list of DamageParts.
"""

import logging
from typing import Any, Callable, List, Optional

from roll_enhancements.core.constants import SettingNames, format_label, localize
from roll_enhancements.core.errors import UnsupportedItemError
from roll_enhancements.modules.items import RollCall, RollMiddleware
from .bonus import roll_bonus_part
from .dialog import dialog_placement, should_show_dialog
from .formula_groups import initialize_formula_groups, resolve_formula_group
from .messages import build_damage_message, publish_damage_message
from .parts import DamagePart, DamageRollContext, roll_damage_parts
from .renderer import render_damage_parts

logger = logging.getLogger(__name__)


class DamageAggregationMiddleware(RollMiddleware):
    """
    Rolls a formula group part by part and posts one combined message.

    Call arguments: ``event``, ``formula_group`` (default 0), ``critical``,
    ``spell_level``, ``versatile`` and ``options`` (``chatMessage``,
    ``rollMode``, ``messageData`` and anything to merge into the message).
    """

    name = 'roll-enhancements.damage-aggregation'

    def __init__(self, engine):
        self.engine = engine

    def around(self, call: RollCall, proceed: Callable[[RollCall], Any]) -> Optional[List[DamagePart]]:
        item = call.item
        kwargs = call.kwargs
        event = kwargs.get('event')
        options = dict(kwargs.get('options') or {})
        settings = self.engine.settings

        if item.damage is None:
            raise UnsupportedItemError(format_label('UnsupportedItemError', name=item.name))

        title = f"{item.name} - {localize('DamageRoll')}"
        roll_mode = options.get('rollMode') or settings.get(SettingNames.ROLL_MODE)
        critical = bool(kwargs.get('critical', False))
        bonus = None

        # One dialog covers every part of the roll
        modifier_key = settings.get(SettingNames.SHOW_ROLL_DIALOG_MODIFIER)
        if should_show_dialog(event, modifier_key):
            if self.engine.dialog is None:
                logger.debug("Damage dialog requested but no dialog is configured")
            else:
                choice = self.engine.dialog.prompt(title, roll_mode, dialog_placement(event))
                if choice is None:
                    logger.info(f"Damage roll for {item.name} cancelled")
                    return None
                critical = choice.critical
                roll_mode = choice.roll_mode or roll_mode
                bonus = choice.bonus or None

        options['fastForward'] = True

        initialize_formula_groups(item, settings)
        group, pairs = resolve_formula_group(
            item, kwargs.get('formula_group', 0), settings, self.engine.notifications
        )
        title += f" ({group.label})"

        context = DamageRollContext(
            critical=critical,
            event=event,
            spell_level=kwargs.get('spell_level'),
            versatile=bool(kwargs.get('versatile', False)),
            options=options
        )
        parts = roll_damage_parts(item, pairs, lambda part_kwargs: proceed(RollCall(item, part_kwargs)), context)

        bonus_part = roll_bonus_part(bonus, critical, self.engine.dice, item.roll_data())
        if bonus_part is not None:
            parts.append(bonus_part)

        content = render_damage_parts(parts)
        message_data = build_damage_message(
            item, content, title, parts, critical, roll_mode, options,
            self.engine.user_id, self.engine.gm_user_ids, self.engine.dice
        )

        if options.get('chatMessage', True):
            publish_damage_message(message_data, parts, self.engine.messages, self.engine.animator)
            logger.info(f"Posted {len(parts)} damage part(s) for {item.name} ({group.label})")

        return parts
