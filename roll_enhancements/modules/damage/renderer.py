"""
Combined damage card rendering.
"""

from typing import Sequence

from markupsafe import Markup

from .parts import DamagePart

SEPARATOR = Markup('<hr />')


def render_part(part: DamagePart) -> Markup:
    """Render one part; its total carries the damage type label."""
    return Markup(part.roll.render({'data-damage-type': part.flavor}))


def render_damage_parts(parts: Sequence[DamagePart]) -> str:
    """
    Render every part inside one damage card, separated by rules.

    Order is preserved exactly as given.
    """
    fragments = SEPARATOR.join(render_part(part) for part in parts)
    return str(Markup(
        '<div class="dnd5e chat-card item-card multi-damage-card">'
        '<div class="card-content"></div>'
        '<div class="card-roll formula-group">{}</div>'
        '</div>'
    ).format(fragments))
