"""Tests for advantage and critical expression rewrites."""

import pytest

from dicecore.dice.combat import is_d20, is_single_d20, rewrite_advantage, rewrite_critical
from dicecore.dice.exceptions import EvaluationError
from dicecore.dice.parser import parse_dice
from dicecore.dice.types import AdvantageType, ErrorKind


class TestRewriteAdvantage:
    """Tests for advantage/disadvantage rewrites."""

    def test_advantage_on_d20(self):
        """Test 1d20 becomes 2d20kh1."""
        assert rewrite_advantage(parse_dice("1d20"), AdvantageType.ADVANTAGE) == "2d20kh1"

    def test_disadvantage_on_d20(self):
        """Test 1d20 becomes 2d20kl1."""
        assert rewrite_advantage(parse_dice("d20"), AdvantageType.DISADVANTAGE) == "2d20kl1"

    def test_modifier_preserved(self):
        """Test flat modifiers survive the rewrite."""
        assert rewrite_advantage(parse_dice("1d20+5"), AdvantageType.ADVANTAGE) == "2d20kh1+5"

    def test_only_first_d20_rewritten(self):
        """Test a second d20 is left alone."""
        rewritten = rewrite_advantage(parse_dice("1d20+1d20"), AdvantageType.ADVANTAGE)
        assert rewritten == "2d20kh1+1d20"

    def test_d20_after_other_dice(self):
        """Test the d20 need not be the first term."""
        rewritten = rewrite_advantage(parse_dice("1d4+1d20"), AdvantageType.ADVANTAGE)
        assert rewritten == "1d4+2d20kh1"

    def test_negative_d20_keeps_sign(self):
        """Test a subtracted d20 stays subtracted."""
        rewritten = rewrite_advantage(parse_dice("10-1d20"), AdvantageType.ADVANTAGE)
        assert rewritten == "10-2d20kh1"

    def test_no_d20_raises(self):
        """Test expressions without a d20 cannot take advantage."""
        with pytest.raises(EvaluationError) as exc_info:
            rewrite_advantage(parse_dice("2d6+3"), AdvantageType.ADVANTAGE)
        assert exc_info.value.kind == ErrorKind.NO_D20_TERM

    def test_exploding_d20_keeps_explosion(self):
        """Test 1d20! becomes 2d20kh1!."""
        rewritten = rewrite_advantage(parse_dice("1d20!+2"), AdvantageType.ADVANTAGE)
        assert rewritten == "2d20kh1!+2"

    def test_exploding_d20_disadvantage(self):
        """Test 1d20!>18 becomes 2d20kl1!>18."""
        rewritten = rewrite_advantage(parse_dice("1d20!>18"), AdvantageType.DISADVANTAGE)
        assert rewritten == "2d20kl1!>18"

    def test_d20_with_drop_keep_is_invalid_modifier(self):
        """Test 2d20kh1 is reported as a modifier conflict, not a missing d20."""
        with pytest.raises(EvaluationError) as exc_info:
            rewrite_advantage(parse_dice("2d20kh1"), AdvantageType.DISADVANTAGE)
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER
        assert "2d20kh1" in str(exc_info.value)

    def test_several_d20s_is_invalid_modifier(self):
        """Test 2d20+5 names the d20 term it cannot rewrite."""
        with pytest.raises(EvaluationError) as exc_info:
            rewrite_advantage(parse_dice("2d20+5"), AdvantageType.ADVANTAGE)
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER
        assert "No d20 term" not in str(exc_info.value)

    def test_single_d20_found_after_multi_d20(self):
        """Test a rewritable d20 later in the expression is still used."""
        rewritten = rewrite_advantage(parse_dice("2d20+1d20"), AdvantageType.ADVANTAGE)
        assert rewritten == "2d20+2d20kh1"

    def test_normal_is_unchanged(self):
        """Test NORMAL returns the expression as-is."""
        assert rewrite_advantage(parse_dice("2d6"), AdvantageType.NORMAL) == "2d6"


class TestRewriteCritical:
    """Tests for critical dice multiplication."""

    def test_doubles_dice_not_bonus(self):
        """Test 2d6+4 becomes 4d6+4."""
        assert rewrite_critical(parse_dice("2d6+4")) == "4d6+4"

    def test_custom_multiplier(self):
        """Test x3 triples every dice term."""
        assert rewrite_critical(parse_dice("1d8+2d6-1"), 3) == "3d8+6d6-1"

    def test_modifiers_preserved(self):
        """Test drop/keep and exploding survive."""
        assert rewrite_critical(parse_dice("2d6!+1")) == "4d6!+1"

    def test_multiplier_one_is_identity(self):
        """Test x1 leaves counts unchanged."""
        assert rewrite_critical(parse_dice("1d12+3"), 1) == "1d12+3"

    def test_invalid_multiplier(self):
        """Test multipliers below 1 are rejected."""
        with pytest.raises(EvaluationError) as exc_info:
            rewrite_critical(parse_dice("1d8"), 0)
        assert exc_info.value.kind == ErrorKind.INVALID_MULTIPLIER


class TestD20Detection:
    """Tests for d20 term detection."""

    def test_single(self):
        assert is_single_d20(parse_dice("d20").terms[0]) is True

    def test_flat_is_not(self):
        assert is_single_d20(parse_dice("20").terms[0]) is False
        assert is_d20(parse_dice("20").terms[0]) is False

    def test_exploding_is_single(self):
        assert is_single_d20(parse_dice("1d20!").terms[0]) is True

    def test_several_dice_are_d20_but_not_single(self):
        term = parse_dice("2d20").terms[0]
        assert is_d20(term) is True
        assert is_single_d20(term) is False
