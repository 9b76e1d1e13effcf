"""
Events published by the dice module.
"""

from roll_enhancements.modules.base import EventTypeDefinition

ROLL_TYPES = ["attack", "tool", "damage", "formula"]

ROLL_COMPLETED_SCHEMA = {
    "type": "object",
    "properties": {
        "item_id": {"type": "string"},
        "roll_type": {"type": "string", "enum": ROLL_TYPES},
        "notation": {"type": "string"},
        "total": {"type": "integer"},
        "breakdown": {"type": "string"},
        "natural_20": {"type": "boolean"},
        "natural_1": {"type": "boolean"}
    },
    "required": ["item_id", "roll_type", "notation", "total", "breakdown"]
}


def roll_completed_event() -> EventTypeDefinition:
    """One evaluated roll of an item primitive (each damage part is its own event)."""
    return EventTypeDefinition(
        type="roll.completed",
        description="An item roll primitive evaluated a formula",
        module="dice",
        data_schema=ROLL_COMPLETED_SCHEMA
    )
