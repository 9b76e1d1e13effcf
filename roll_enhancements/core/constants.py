"""
Names shared across modules: flag scope, setting keys, flag keys and
the user-facing labels.
"""

MODULE_NAME = 'roll-enhancements'


class SettingNames:
    AUTO_CHECK = 'autoCheck'
    AUTO_DMG = 'autoDamage'
    AUTO_OTHER = 'autoOther'
    ROLL_MODE = 'rollMode'
    SHOW_ROLL_DIALOG_MODIFIER = 'showRollDialogModifier'


class FlagNames:
    AUTO_ROLL_ATTACK = 'autoRollAttack'
    AUTO_ROLL_DAMAGE = 'autoRollDamage'
    AUTO_ROLL_OTHER = 'autoRollOther'
    FORMULA_GROUPS = 'formulaGroups'


# English strings; keys follow the host's localization ids
LABELS = {
    'DamageRoll': 'Damage Roll',
    'AttackRoll': 'Attack Roll',
    'ToolCheck': 'Tool Check',
    'OtherFormula': 'Other Formula',
    'Critical': 'Critical',
    'CriticalHit': 'Critical Hit',
    'Normal': 'Normal',
    'RollSituationalBonus': 'Situational Bonus:',
    'FormulaGroupDefault': 'Default',
    'GroupEmptyError': 'Formula group "{label}" has no damage formulae to roll.',
    'InvalidGroupError': 'Invalid formula group index provided: {index}',
    'UnsupportedItemError': 'You cannot roll damage for {name}.',
}


def localize(key: str) -> str:
    """Return the label for ``key``, or the key itself when unknown."""
    return LABELS.get(key, key)


def format_label(key: str, **data) -> str:
    """Localize ``key`` and fill its placeholders from ``data``."""
    return localize(key).format(**data)
