"""Tests for dice notation parser."""

import pytest

from dicecore.dice.exceptions import DiceParseError
from dicecore.dice.parser import (
    format_expression,
    format_term,
    normalize_expression,
    parse_dice,
)
from dicecore.dice.types import (
    DiceTerm,
    Direction,
    DropKeep,
    DropKeepKind,
    ErrorKind,
    ExplodeCondition,
    Exploding,
    FlatModifier,
)


class TestNormalizeExpression:
    """Tests for notation normalization."""

    def test_lowercases_and_strips_whitespace(self):
        """Test that case and all whitespace are normalized away."""
        assert normalize_expression(" 3D6 + 2 ") == "3d6+2"

    def test_rewrites_adv_keyword(self):
        """Test adv becomes 2d20kh1."""
        assert normalize_expression("adv") == "2d20kh1"

    def test_rewrites_advantage_keyword(self):
        """Test advantage becomes 2d20kh1."""
        assert normalize_expression("Advantage + 5") == "2d20kh1+5"

    def test_rewrites_disadvantage_keyword(self):
        """Test disadvantage is not mangled by the advantage rewrite."""
        assert normalize_expression("disadvantage") == "2d20kl1"

    def test_rewrites_dis_keyword(self):
        """Test dis becomes 2d20kl1."""
        assert normalize_expression("dis-1") == "2d20kl1-1"

    def test_non_string_raises(self):
        """Test that non-string input is an invalid token."""
        with pytest.raises(DiceParseError) as exc_info:
            normalize_expression(None)
        assert exc_info.value.kind == ErrorKind.INVALID_TOKEN


class TestParseDiceBasic:
    """Tests for basic dice terms."""

    def test_parse_1d20(self):
        """Test parsing standard d20."""
        expr = parse_dice("1d20")
        assert expr.terms == (DiceTerm(count=1, sides=20),)

    def test_parse_d100_implicit_one(self):
        """Test parsing d100 without a leading count."""
        expr = parse_dice("d100")
        assert expr.terms == (DiceTerm(count=1, sides=100),)

    def test_parse_records_normalized_string(self):
        """Test the expression keeps its normalized source."""
        expr = parse_dice(" 3D6 + 2 ")
        assert expr.normalized == "3d6+2"

    def test_parse_flat_integer(self):
        """Test a bare integer is a flat modifier."""
        expr = parse_dice("7")
        assert expr.terms == (FlatModifier(value=7),)


class TestParseDiceWithModifiers:
    """Tests for signed multi-term expressions."""

    def test_parse_positive_modifier(self):
        """Test parsing with positive modifier."""
        expr = parse_dice("2d6+3")
        assert expr.terms == (DiceTerm(count=2, sides=6), FlatModifier(value=3))

    def test_parse_negative_modifier(self):
        """Test parsing with negative modifier."""
        expr = parse_dice("4d6-2")
        assert expr.terms[1] == FlatModifier(value=2, sign=-1)

    def test_parse_multiple_dice_groups(self):
        """Test parsing several dice groups and modifiers."""
        expr = parse_dice("2d10+1d4+5")
        assert expr.terms == (
            DiceTerm(count=2, sides=10),
            DiceTerm(count=1, sides=4),
            FlatModifier(value=5),
        )

    def test_parse_negative_dice_term(self):
        """Test a subtracted dice term carries a negative sign."""
        expr = parse_dice("1d20-1d4")
        assert expr.terms[1] == DiceTerm(count=1, sides=4, sign=-1)

    def test_parse_leading_minus(self):
        """Test a leading minus applies to the first term."""
        expr = parse_dice("-2+1d6")
        assert expr.terms == (FlatModifier(value=2, sign=-1), DiceTerm(count=1, sides=6))

    def test_parse_leading_plus(self):
        """Test a leading plus is accepted."""
        expr = parse_dice("+1d6")
        assert expr.terms == (DiceTerm(count=1, sides=6),)


class TestParseDropKeep:
    """Tests for drop/keep modifiers."""

    @pytest.mark.parametrize(
        "notation,kind,direction",
        [
            ("4d6dl1", DropKeepKind.DROP, Direction.LOWEST),
            ("4d6dh1", DropKeepKind.DROP, Direction.HIGHEST),
            ("4d6kh1", DropKeepKind.KEEP, Direction.HIGHEST),
            ("4d6kl1", DropKeepKind.KEEP, Direction.LOWEST),
        ],
    )
    def test_parse_drop_keep_forms(self, notation, kind, direction):
        """Test each drop/keep form."""
        term = parse_dice(notation).terms[0]
        assert term.drop_keep == DropKeep(kind=kind, direction=direction, amount=1)

    def test_amount_equal_to_count_rejected(self):
        """Test dropping every die is an invalid modifier."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("2d6dl2")
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER

    def test_amount_greater_than_count_rejected(self):
        """Test keeping more dice than rolled is an invalid modifier."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("2d20kh3")
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER

    def test_zero_amount_rejected(self):
        """Test a zero amount is an invalid modifier."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("4d6dl0")
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER


class TestParseExploding:
    """Tests for exploding dice."""

    def test_parse_bare_exploding(self):
        """Test ! explodes on the maximum face."""
        term = parse_dice("1d6!").terms[0]
        assert term.exploding == Exploding(condition=ExplodeCondition.MAX)

    def test_parse_greater_than(self):
        """Test !>4 explodes above the target."""
        term = parse_dice("3d6!>4").terms[0]
        assert term.exploding == Exploding(condition=ExplodeCondition.GREATER, target=4)

    def test_parse_less_than(self):
        """Test !<2 explodes below the target."""
        term = parse_dice("3d6!<2").terms[0]
        assert term.exploding == Exploding(condition=ExplodeCondition.LESS, target=2)

    def test_parse_drop_keep_with_exploding(self):
        """Test drop/keep and exploding combine."""
        term = parse_dice("2d20kh1!").terms[0]
        assert term.drop_keep.kind == DropKeepKind.KEEP
        assert term.exploding.condition == ExplodeCondition.MAX

    def test_comparator_without_target_rejected(self):
        """Test !> with no target is an invalid modifier."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("1d6!>")
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER

    def test_target_without_comparator_rejected(self):
        """Test !5 with no comparator is an invalid modifier."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("1d6!5")
        assert exc_info.value.kind == ErrorKind.INVALID_MODIFIER


class TestParseDiceErrors:
    """Tests for invalid dice notation."""

    def test_parse_empty_string_raises(self):
        """Test that empty string raises error."""
        with pytest.raises(DiceParseError, match="empty"):
            parse_dice("")

    def test_parse_whitespace_only_raises(self):
        """Test that whitespace-only input is empty."""
        with pytest.raises(DiceParseError, match="empty"):
            parse_dice("   ")

    @pytest.mark.parametrize("notation", ["3x6", "d", "2d", "1d20+", "1d6++2", "abc", "1d6*2"])
    def test_invalid_tokens(self, notation):
        """Test malformed notation is an invalid token."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice(notation)
        assert exc_info.value.kind == ErrorKind.INVALID_TOKEN

    @pytest.mark.parametrize("notation", ["0d6", "1001d6", "1d0", "1d10001"])
    def test_out_of_range(self, notation):
        """Test counts and sides outside their bounds."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice(notation)
        assert exc_info.value.kind == ErrorKind.OUT_OF_RANGE

    def test_bounds_are_inclusive(self):
        """Test 1000 dice of 10000 sides is accepted."""
        term = parse_dice("1000d10000").terms[0]
        assert term.count == 1000
        assert term.sides == 10000

    def test_too_long_rejected(self):
        """Test the expression length cap."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("+".join(["1"] * 50), max_length=20)
        assert exc_info.value.kind == ErrorKind.OUT_OF_RANGE

    def test_too_many_terms_rejected(self):
        """Test the term count cap."""
        with pytest.raises(DiceParseError) as exc_info:
            parse_dice("1+1+1+1", max_terms=3)
        assert exc_info.value.kind == ErrorKind.OUT_OF_RANGE

    def test_parse_error_is_value_error(self):
        """Test DiceParseError stays a ValueError."""
        with pytest.raises(ValueError):
            parse_dice("3x6")


class TestFormatting:
    """Tests for rendering terms back to notation."""

    def test_format_drop_keep(self):
        """Test drop/keep notation."""
        assert format_term(parse_dice("4d6dl1").terms[0]) == "4d6dl1"

    def test_format_exploding(self):
        """Test exploding notation."""
        assert format_term(parse_dice("2d6!>4").terms[0]) == "2d6!>4"

    def test_format_expression_adds_count_and_signs(self):
        """Test implicit counts become explicit and signs are kept."""
        assert format_expression(parse_dice("d20 - d4 + 5").terms) == "1d20-1d4+5"

    def test_format_leading_negative(self):
        """Test a leading negative term keeps its sign."""
        assert format_expression(parse_dice("-3+d6").terms) == "-3+1d6"
