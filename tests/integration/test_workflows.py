"""
Integration tests for complete roll workflows.

These drive the engine the way a front end does: import items, use them,
roll damage by formula group, and inspect the resulting chat log.
"""

import pytest
from roll_enhancements.core.config import Config
from roll_enhancements.core.constants import MODULE_NAME
from roll_enhancements.core.engine import RollEngine
from roll_enhancements.core.errors import (
    EmptyGroupError, InvalidGroupError, ItemNotFoundError, UnsupportedItemError
)
from roll_enhancements.core.module_loader import ModuleDependencyError, ModuleLoader
from roll_enhancements.modules.autoroll import is_critical, patch_item_roll
from roll_enhancements.modules.base import Module
from roll_enhancements.modules.damage import DiceAnimator, StaticDamageDialog, patch_item_roll_damage
from roll_enhancements.modules.dice import DiceExpression, DiceTermResult, RollResult
from roll_enhancements.modules.items import RollEvent


def make_config():
    config = Config()
    config.user_id = 'player1'
    config.gm_user_ids = ['gm1']
    config.auto_check = True
    config.auto_damage = True
    config.auto_other = False
    config.roll_mode = 'publicroll'
    config.show_roll_dialog_modifier = 'shiftKey'
    return config


@pytest.fixture
def engine():
    """Create an in-memory engine with every module loaded."""
    engine = RollEngine(':memory:', config=make_config(), seed=42)
    yield engine
    engine.close()


def import_item(engine, data):
    result = engine.add_item(data)
    assert result.success, result.error
    return engine.get_item(result.data['id'])


@pytest.fixture
def frost_brand(engine):
    return import_item(engine, {
        'name': 'Frost Brand',
        'type': 'weapon',
        'actor': 'Aria',
        'action_type': 'mwak',
        'ability_mod': 3,
        'attack_bonus': 2,
        'damage': {
            'parts': [['1d8 + @mod', 'slashing'], ['1d6', 'fire'], ['1d4', 'cold']],
            'versatile': '1d10 + @mod'
        },
        'formula': '1d20'
    })


def roll_events(engine, roll_type=None):
    events = engine.storage.get_events(event_type='roll.completed', limit=1000)
    return [e for e in events if roll_type is None or e.data['roll_type'] == roll_type]


class TestDamageWorkflow:
    """Test per-part damage rolls end to end."""

    def test_default_group_rolls_every_part(self, engine, frost_brand):
        parts = engine.items.roll_damage(frost_brand)

        assert [p.damage_type for p in parts] == ['slashing', 'fire', 'cold']
        assert [p.roll.notation for p in parts] == ['1d8 + 3', '1d6', '1d4']

        messages = engine.messages.list()
        assert len(messages) == 1
        assert messages[0].flavor == 'Frost Brand - Damage Roll (Default)'
        assert len(roll_events(engine, 'damage')) == 3

    def test_group_selects_slots(self, engine, frost_brand):
        """Test that group [0, 2] rolls slashing and cold only, in one message."""
        frost_brand.set_flag(MODULE_NAME, 'formulaGroups', [
            {'label': 'Default', 'formulaSet': [0, 1, 2]},
            {'label': 'No fire', 'formulaSet': [0, 2]},
        ])

        parts = engine.items.roll_damage(frost_brand, formula_group=1)

        assert [p.damage_type for p in parts] == ['slashing', 'cold']
        assert [p.flavor for p in parts] == ['Slashing', 'Cold']

        message = engine.messages.list()[0]
        assert message.flavor == 'Frost Brand - Damage Roll (No fire)'
        assert message.content.count('<hr />') == 1
        assert 'data-damage-type="Slashing"' in message.content
        assert 'data-damage-type="Cold"' in message.content
        assert 'data-damage-type="Fire"' not in message.content
        stored = message.data['flags'][MODULE_NAME]['rolls']
        assert [r['total'] for r in stored] == [p.roll.total for p in parts]
        assert message.data['roll']['total'] == 0

    def test_item_formula_list_unchanged(self, engine, frost_brand):
        before = frost_brand.damage
        engine.items.roll_damage(frost_brand, critical=True, versatile=True)
        assert frost_brand.damage is before
        assert engine.get_item(frost_brand.id).damage == before

    def test_critical_doubles_each_part(self, engine, frost_brand):
        parts = engine.items.roll_damage(frost_brand, critical=True)
        assert [p.roll.notation for p in parts] == ['2d8 + 3', '2d6', '2d4']
        assert engine.messages.list()[0].flavor.endswith('(Default) (Critical)')

    def test_versatile_replaces_first_part(self, engine, frost_brand):
        parts = engine.items.roll_damage(frost_brand, versatile=True)
        assert [p.roll.notation for p in parts] == ['1d10 + 3', '1d6', '1d4']

    def test_spell_scaling(self, engine):
        fireball = import_item(engine, {
            'name': 'Fire Bolt Burst',
            'type': 'spell',
            'level': 1,
            'damage': {'parts': [['1d6', 'fire'], ['1d4', 'force']]},
            'scaling': {'mode': 'level', 'formula': '1d6'}
        })

        parts = engine.items.roll_damage(fireball, spell_level=3)
        assert [p.roll.notation for p in parts] == ['1d6 + 1d6 + 1d6', '1d4']

    def test_no_message(self, engine, frost_brand):
        """Test that chatMessage False returns the parts without posting."""
        parts = engine.items.roll_damage(frost_brand, options={'chatMessage': False})
        assert len(parts) == 3
        assert engine.messages.count() == 0

    def test_roll_mode_option(self, engine, frost_brand):
        engine.items.roll_damage(frost_brand, options={'rollMode': 'blindroll'})
        data = engine.messages.list()[0].data
        assert data['whisper'] == ['gm1']
        assert data['blind'] is True

    def test_roll_mode_setting(self, engine, frost_brand):
        engine.settings.set('rollMode', 'selfroll')
        engine.items.roll_damage(frost_brand)
        assert engine.messages.list()[0].data['whisper'] == ['player1']

    def test_empty_group(self, engine, frost_brand):
        """Test that a group with no existing slots notifies, raises and posts nothing."""
        frost_brand.set_flag(MODULE_NAME, 'formulaGroups', [{'label': 'Ghost', 'formulaSet': [8, 9]}])

        with pytest.raises(EmptyGroupError) as error:
            engine.items.roll_damage(frost_brand)

        assert error.value.to_result().error_code == 'empty_formula_group'
        assert engine.messages.count() == 0
        assert roll_events(engine) == []
        assert engine.notifications.history[-1] == {
            'level': 'error',
            'message': 'Formula group "Ghost" has no damage formulae to roll.'
        }

    def test_invalid_group(self, engine, frost_brand):
        with pytest.raises(InvalidGroupError):
            engine.items.roll_damage(frost_brand, formula_group=4)
        assert engine.messages.count() == 0

    def test_item_without_damage(self, engine):
        rope = import_item(engine, {'name': 'Rope', 'type': 'equipment'})
        with pytest.raises(UnsupportedItemError):
            engine.items.roll_damage(rope)

    def test_empty_formulas_skipped(self, engine):
        odd = import_item(engine, {
            'name': 'Odd Blade', 'type': 'weapon',
            'damage': {'parts': [['', 'slashing'], ['1d6', 'fire']]}
        })
        parts = engine.items.roll_damage(odd)
        assert [p.damage_type for p in parts] == ['fire']


class TestDamageDialog:
    """Test the bonus/critical dialog inside the damage roll."""

    def test_dialog_only_with_modifier(self, engine, frost_brand):
        engine.dialog = StaticDamageDialog(critical=True)
        engine.items.roll_damage(frost_brand, event=RollEvent())
        assert engine.dialog.prompts == []

    def test_dialog_asked_once_for_all_parts(self, engine, frost_brand):
        """Test that the dialog's answer applies to every part plus the bonus."""
        engine.dialog = StaticDamageDialog(critical=True, bonus='1d4 + 1d6', roll_mode='gmroll')

        parts = engine.items.roll_damage(frost_brand, event=RollEvent(shift_key=True, client_x=50, client_y=400))

        assert engine.dialog.prompts == ['Frost Brand - Damage Roll']
        assert [p.roll.notation for p in parts] == ['2d8 + 3', '2d6', '2d4', '2d4 + 1d6']
        assert parts[-1].flavor == 'Situational Bonus'
        assert parts[-1].damage_type is None

        message = engine.messages.list()[0]
        assert message.flavor == 'Frost Brand - Damage Roll (Default) (Critical)'
        assert message.data['whisper'] == ['gm1']
        assert len(message.data['flags'][MODULE_NAME]['rolls']) == 4

    def test_dialog_can_clear_critical(self, engine, frost_brand):
        engine.dialog = StaticDamageDialog(critical=False)
        parts = engine.items.roll_damage(frost_brand, critical=True, event=RollEvent(shift_key=True))
        assert [p.roll.notation for p in parts] == ['1d8 + 3', '1d6', '1d4']

    def test_dialog_cancel(self, engine, frost_brand):
        """Test that dismissing the dialog cancels everything."""
        engine.dialog = StaticDamageDialog(cancel=True)

        assert engine.items.roll_damage(frost_brand, event=RollEvent(shift_key=True)) is None
        assert engine.messages.count() == 0
        assert roll_events(engine) == []

    def test_modifier_setting(self, engine, frost_brand):
        engine.settings.set('showRollDialogModifier', 'altKey')
        engine.dialog = StaticDamageDialog()

        engine.items.roll_damage(frost_brand, event=RollEvent(shift_key=True))
        assert engine.dialog.prompts == []
        engine.items.roll_damage(frost_brand, event=RollEvent(alt_key=True))
        assert len(engine.dialog.prompts) == 1

    def test_no_dialog_configured(self, engine, frost_brand):
        parts = engine.items.roll_damage(frost_brand, event=RollEvent(shift_key=True))
        assert len(parts) == 3


class FailingAnimator(DiceAnimator):
    def __init__(self):
        self.calls = []

    def show_for_roll(self, roll, user, synchronize, whisper, blind):
        self.calls.append(roll.notation)
        raise RuntimeError("no GPU")


class TestAnimation:
    def test_animation_failure_does_not_block_message(self, engine, frost_brand):
        engine.animator = FailingAnimator()
        parts = engine.items.roll_damage(frost_brand)
        assert len(engine.animator.calls) == len(parts)
        assert engine.messages.count() == 1


class TestAutoRoll:
    """Test automatic rolls after an item is used."""

    def set_toggles(self, engine, check, damage, other):
        engine.settings.set('autoCheck', check)
        engine.settings.set('autoDamage', damage)
        engine.settings.set('autoOther', other)

    def test_all_toggles_off(self, engine, frost_brand):
        """Test that with every toggle off only the item card is posted."""
        self.set_toggles(engine, False, False, False)

        card = engine.items.roll(frost_brand)

        assert card is not None
        assert engine.messages.count() == 1
        assert roll_events(engine) == []

    def test_all_toggles_on(self, engine, frost_brand):
        self.set_toggles(engine, True, True, True)

        engine.items.roll(frost_brand)

        flavors = [m.flavor for m in engine.messages.list()]
        assert flavors[0] == 'Frost Brand'
        assert flavors[1] == 'Frost Brand - Attack Roll'
        assert flavors[2].startswith('Frost Brand - Damage Roll (Default)')
        assert flavors[3] == 'Frost Brand - Other Formula'
        assert len(flavors) == 4

    def test_item_flag_overrides_setting(self, engine, frost_brand):
        self.set_toggles(engine, True, True, False)
        engine.settings.set_flag(frost_brand, 'autoRollDamage', False)
        engine.settings.set_flag(frost_brand, 'autoRollOther', True)

        engine.items.roll(frost_brand)

        assert len(roll_events(engine, 'damage')) == 0
        assert len(roll_events(engine, 'attack')) == 1
        assert len(roll_events(engine, 'formula')) == 1

    def test_default_groups_created(self, engine, frost_brand):
        self.set_toggles(engine, False, False, True)
        engine.items.roll(frost_brand)
        assert frost_brand.get_flag(MODULE_NAME, 'formulaGroups') == [
            {'label': 'Default', 'formulaSet': [0, 1, 2]}
        ]

    def test_tool_check(self, engine):
        self.set_toggles(engine, True, True, True)
        tools = import_item(engine, {'name': "Thieves' Tools", 'type': 'tool', 'tool_bonus': 2})

        engine.items.roll(tools)

        assert len(roll_events(engine, 'tool')) == 1
        assert len(roll_events(engine)) == 1

    def test_no_check_for_plain_items(self, engine):
        self.set_toggles(engine, True, True, True)
        torch = import_item(engine, {'name': 'Torch', 'type': 'equipment'})

        engine.items.roll(torch)
        assert roll_events(engine) == []

    def test_cancelled_use_skips_rolls(self, engine, frost_brand):
        self.set_toggles(engine, True, True, True)
        assert engine.items.roll(frost_brand, configure=lambda item: None) is None
        assert engine.messages.count() == 0

    def test_critical_hit_passed_to_damage(self, engine, frost_brand):
        """Test that a check die at or above its threshold makes the damage critical."""
        self.set_toggles(engine, True, True, False)
        frost_brand.critical_threshold = 1

        engine.items.roll(frost_brand)

        damage = roll_events(engine, 'damage')
        assert sorted(e.data['notation'] for e in damage) == ['2d4', '2d6', '2d8 + 3']

    def test_shared_modifier_snapshot(self, engine, frost_brand):
        """Test that every chained roll sees the event the use started with."""
        self.set_toggles(engine, True, True, False)
        engine.dialog = StaticDamageDialog()

        engine.items.roll(frost_brand, event=RollEvent(shift_key=True, alt_key=True))

        attack = roll_events(engine, 'attack')[0]
        assert 'advantage' in attack.data['breakdown']
        assert engine.dialog.prompts == ['Frost Brand - Damage Roll']

    def test_spell_level_from_call(self, engine):
        self.set_toggles(engine, False, True, False)
        bolt = import_item(engine, {
            'name': 'Chromatic Orb',
            'type': 'spell',
            'level': 1,
            'damage': {'parts': [['1d8', 'cold']]},
            'scaling': {'mode': 'level', 'formula': '1d8'}
        })

        engine.items.roll(bolt, spell_level=2)
        assert roll_events(engine, 'damage')[0].data['notation'] == '1d8 + 1d8'

    @pytest.mark.parametrize("faces,expected", [
        ([5, 20], False),
        ([20, 5], True),
        ([19, 20], False),
    ])
    def test_critical_reads_first_advantage_face(self, faces, expected):
        """Test that the first of the two d20 faces decides the critical, not the kept one."""
        kept = max(faces)
        check = RollResult(
            notation='1d20',
            dice=[DiceTermResult(DiceExpression(1, 20), [kept], critical=20)],
            static_modifier=0,
            advantage=True,
            advantage_rolls=faces
        )
        assert is_critical(check) is expected

    def test_critical_without_advantage(self):
        check = RollResult(
            notation='1d20',
            dice=[DiceTermResult(DiceExpression(1, 20), [19], critical=19)],
            static_modifier=0
        )
        assert is_critical(check)
        assert not is_critical(None)

    @pytest.mark.parametrize("spell_level,notation", [
        (2.0, '1d8 + 1d8'),
        (3, '1d8 + 1d8 + 1d8'),
        (2.5, '1d8'),
        (True, '1d8'),
        ('2', '1d8'),
    ])
    def test_spell_level_must_be_whole(self, engine, spell_level, notation):
        """Test that only whole-number spell levels scale; anything else uses the item level."""
        self.set_toggles(engine, False, True, False)
        orb = import_item(engine, {
            'name': 'Chromatic Orb',
            'type': 'spell',
            'level': 1,
            'damage': {'parts': [['1d8', 'cold']]},
            'scaling': {'mode': 'level', 'formula': '1d8'}
        })

        engine.items.roll(orb, spell_level=spell_level)
        assert roll_events(engine, 'damage')[0].data['notation'] == notation

    def test_errors_abort_remaining_rolls(self, engine, frost_brand):
        """Test that a failing damage stage stops the other formula roll."""
        self.set_toggles(engine, True, True, True)
        frost_brand.set_flag(MODULE_NAME, 'formulaGroups', [{'label': 'Ghost', 'formulaSet': [9]}])

        with pytest.raises(EmptyGroupError):
            engine.items.roll(frost_brand)

        assert len(roll_events(engine, 'attack')) == 1
        assert roll_events(engine, 'formula') == []


class TestEngine:
    """Test engine wiring."""

    def test_patches_are_idempotent(self, engine):
        assert not patch_item_roll(engine.items, engine)
        assert not patch_item_roll_damage(engine.items, engine)
        assert len(engine.items.roll.middleware) == 1
        assert len(engine.items.roll_damage.middleware) == 1

    def test_modules_loaded_in_dependency_order(self, engine):
        names = list(engine._modules)
        assert names.index('dice') < names.index('damage') < names.index('autoroll')
        assert engine.get_module('damage') is not None

    def test_dependencies_pulled_in(self):
        engine = RollEngine(':memory:', config=make_config(), modules=['autoroll'])
        try:
            assert set(engine._modules) == {'dice', 'damage', 'autoroll'}
        finally:
            engine.close()

    def test_unknown_module(self):
        with pytest.raises(ModuleDependencyError):
            RollEngine(':memory:', config=make_config(), modules=['astrology'])

    def test_circular_dependencies(self):
        class Left(Module):
            name = 'left'
            version = '0.1.0'

            def dependencies(self):
                return ['right']

        class Right(Module):
            name = 'right'
            version = '0.1.0'

            def dependencies(self):
                return ['left']

        with pytest.raises(ModuleDependencyError):
            ModuleLoader().load_modules([Left(), Right()])

    def test_dice_only_engine_rolls_single_damage(self):
        """Test that without the damage module the primitive does one roll."""
        engine = RollEngine(':memory:', config=make_config(), seed=1, modules=['dice'])
        try:
            item = import_item(engine, {
                'name': 'Flame Tongue', 'type': 'weapon',
                'damage': {'parts': [['1d8', 'slashing'], ['2d6', 'fire']]}
            })
            roll = engine.items.roll_damage(item)
            assert roll.notation == '1d8 + 2d6'
            assert engine.messages.count() == 1
        finally:
            engine.close()

    def test_add_invalid_item(self, engine):
        result = engine.add_item({'name': 'No type'})
        assert not result.success
        assert result.error_code == 'schema_validation_failed'

    def test_get_missing_item(self, engine):
        with pytest.raises(ItemNotFoundError):
            engine.get_item('item_missing')

    def test_import_event(self, engine, frost_brand):
        events = engine.storage.get_events(event_type='item.imported')
        assert events[0].data == {'item_id': frost_brand.id, 'name': 'Frost Brand'}
