"""
Tests for the dice module.
"""

import pytest
from roll_enhancements.modules.dice import DiceParser, DiceNotationError, DiceRoller, DiceModule


class TestDiceParser:
    """Test dice notation parser."""

    def test_simple_roll(self):
        """Test parsing simple dice notation."""
        parsed = DiceParser.parse("1d20")
        assert len(parsed.dice_groups) == 1
        assert parsed.dice_groups[0].count == 1
        assert parsed.dice_groups[0].sides == 20
        assert parsed.static_modifier == 0

    def test_roll_with_modifier(self):
        """Test parsing with static modifier."""
        assert DiceParser.parse("1d20+5").static_modifier == 5
        assert DiceParser.parse("1d20-3").static_modifier == -3

    def test_complex_expression(self):
        """Test parsing several dice groups and flat terms."""
        parsed = DiceParser.parse("2d8 + 1d6 + 3 + 1")
        assert [(g.count, g.sides) for g in parsed.dice_groups] == [(2, 8), (1, 6)]
        assert parsed.static_modifier == 4
        assert parsed.formula == "2d8 + 1d6 + 4"

    def test_subtracted_dice(self):
        """Test that subtracted dice keep their sign."""
        parsed = DiceParser.parse("1d8-1d4")
        assert [g.sign for g in parsed.dice_groups] == [1, -1]
        assert parsed.formula == "1d8 - 1d4"

    def test_implicit_count(self):
        """Test that 'd6' means one die."""
        assert DiceParser.parse("d6").dice_groups[0].count == 1

    def test_flat_only(self):
        """Test formulas without any dice."""
        parsed = DiceParser.parse("5")
        assert parsed.dice_groups == []
        assert parsed.formula == "5"
        assert DiceParser.parse("0").formula == "0"

    def test_data_references(self):
        """Test that @name references resolve from roll data."""
        parsed = DiceParser.parse("1d8 + @mod", {'mod': 3})
        assert parsed.static_modifier == 3
        assert parsed.formula == "1d8 + 3"

    def test_unknown_data_reference_is_zero(self):
        """Test that unknown references resolve to 0."""
        assert DiceParser.parse("1d8 + @missing", {}).static_modifier == 0

    def test_case_and_whitespace(self):
        """Test that parsing ignores case and whitespace."""
        parsed = DiceParser.parse(" 2D6 +  1 ")
        assert parsed.dice_groups[0].sides == 6
        assert parsed.static_modifier == 1

    @pytest.mark.parametrize("notation", ["", "abc", "1d20+", "5d", "1d20*2", "0d6", "1d1", "101d6", "1d1001"])
    def test_invalid_notation(self, notation):
        """Test that invalid notation raises DiceNotationError."""
        with pytest.raises(DiceNotationError):
            DiceParser.parse(notation)

    def test_validate(self):
        """Test validate() without raising."""
        assert DiceParser.validate("3d6+2")
        assert not DiceParser.validate("three dice")

    def test_alter_first_only_touches_first_group(self):
        """Test that alter_first doubles only the first dice group."""
        parsed = DiceParser.parse("1d4 + 2d6 + 1").alter_first(2)
        assert [g.count for g in parsed.dice_groups] == [2, 2]
        assert parsed.formula == "2d4 + 2d6 + 1"

    def test_alter_all(self):
        """Test that alter_all doubles every dice group."""
        parsed = DiceParser.parse("1d6 + 1d4 + 2").alter_all(2)
        assert parsed.formula == "2d6 + 2d4 + 2"

    def test_alter_returns_copy(self):
        """Test that altering leaves the original untouched."""
        parsed = DiceParser.parse("1d8")
        parsed.alter_all(2)
        assert parsed.dice_groups[0].count == 1

    def test_alter_flat_only(self):
        """Test that flat-only rolls are unchanged by alter_first."""
        parsed = DiceParser.parse("4")
        assert parsed.alter_first(2).formula == "4"


class TestDiceRoller:
    """Test dice rolling."""

    def test_roll_within_bounds(self):
        """Test totals stay within the formula's range."""
        roller = DiceRoller(seed=42)
        for _ in range(50):
            result = roller.roll("2d6+3")
            assert 5 <= result.total <= 15
            assert result.total == sum(result.dice[0].rolls) + 3

    def test_seeded_rolls_repeat(self):
        """Test that the same seed gives the same rolls."""
        first = [DiceRoller(seed=7).roll("4d6").total for _ in range(3)]
        second = [DiceRoller(seed=7).roll("4d6").total for _ in range(3)]
        assert first == second

    def test_set_seed(self):
        """Test re-seeding a roller."""
        roller = DiceRoller(seed=1)
        expected = roller.roll("1d100").total
        roller.set_seed(1)
        assert roller.roll("1d100").total == expected

    def test_subtracted_group_total(self):
        """Test that subtracted groups count negatively."""
        result = DiceRoller(seed=3).roll("1d8-1d4")
        assert result.dice[1].total == -sum(result.dice[1].rolls)
        assert result.total == result.dice[0].total + result.dice[1].total

    def test_critical_threshold_on_first_group(self):
        """Test that the critical threshold is recorded on the first group only."""
        result = DiceRoller(seed=1).roll("1d20 + 1d4", critical=19)
        assert result.dice[0].critical == 19
        assert result.dice[1].critical is None

    def test_advantage_keeps_higher(self):
        """Test advantage rolls two d20 and keeps the higher."""
        result = DiceRoller(seed=5).roll("1d20+2", advantage=True)
        assert len(result.advantage_rolls) == 2
        assert result.dice[0].rolls[0] == max(result.advantage_rolls)

    def test_disadvantage_keeps_lower(self):
        """Test disadvantage keeps the lower d20."""
        result = DiceRoller(seed=5).roll("1d20", disadvantage=True)
        assert result.dice[0].rolls[0] == min(result.advantage_rolls)

    def test_advantage_and_disadvantage_rejected(self):
        """Test that both advantage and disadvantage is an error."""
        with pytest.raises(ValueError):
            DiceRoller().roll("1d20", advantage=True, disadvantage=True)

    def test_zero_roll(self):
        """Test the flat zero roll."""
        result = DiceRoller().roll("0")
        assert result.total == 0
        assert result.dice == []

    def test_roll_parsed(self):
        """Test rolling an already parsed (and altered) roll."""
        parsed = DiceParser.parse("1d6").alter_first(2)
        result = DiceRoller(seed=2).roll(parsed)
        assert result.notation == "2d6"
        assert len(result.dice[0].rolls) == 2

    def test_breakdown(self):
        """Test the human-readable breakdown."""
        result = DiceRoller(seed=4).roll("1d6+2")
        breakdown = result.get_breakdown()
        assert "1d6: [" in breakdown
        assert "modifier: +2" in breakdown
        assert f"**Total: {result.total}**" in breakdown

    def test_render_annotates_total(self):
        """Test that render() puts extra attributes on the total element."""
        result = DiceRoller(seed=4).roll("1d6")
        html = result.render({'data-damage-type': 'Fire'})
        assert '<div class="dice-roll">' in html
        assert f'<h4 class="dice-total" data-damage-type="Fire">{result.total}</h4>' in html

    def test_render_escapes(self):
        """Test that attribute values are escaped."""
        html = DiceRoller(seed=4).roll("1d6").render({'data-damage-type': '<b>"x"</b>'})
        assert '<b>' not in html
        assert '&lt;b&gt;' in html

    def test_to_dict(self):
        """Test serialization."""
        result = DiceRoller(seed=4).roll("2d6+1", critical=6, metadata={'roll_type': 'damage'})
        data = result.to_dict()
        assert data['notation'] == "2d6 + 1"
        assert data['total'] == result.total
        assert data['dice'][0]['rolls'] == result.dice[0].rolls
        assert data['dice'][0]['critical'] == 6
        assert data['metadata'] == {'roll_type': 'damage'}


class TestDiceModule:
    """Test the dice module definition."""

    def test_registers_roll_completed(self):
        module = DiceModule()
        assert module.name == "dice"
        types = [t.type for t in module.register_event_types()]
        assert types == ['roll.completed']
