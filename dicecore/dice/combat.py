"""Combat expression rewrites.

Advantage, disadvantage and critical hits are expressed as rewritten
notation that is then rolled normally, so no dice mechanics live here.
"""

from dataclasses import replace

from dicecore.dice.exceptions import EvaluationError
from dicecore.dice.parser import format_expression, format_term
from dicecore.dice.types import (
    AdvantageType,
    DiceTerm,
    Direction,
    DropKeep,
    DropKeepKind,
    ErrorKind,
    Expression,
)


DEFAULT_CRITICAL_MULTIPLIER = 2
NATURAL_DIE = 20


def is_d20(term: object) -> bool:
    """Any dice term rolling d20s."""
    return isinstance(term, DiceTerm) and term.sides == NATURAL_DIE


def is_single_d20(term: object) -> bool:
    """One d20 without drop/keep; exploding is allowed."""
    return is_d20(term) and term.count == 1 and term.drop_keep is None


def rewrite_advantage(expression: Expression, advantage_type: AdvantageType) -> str:
    """Rewrite the first single d20 as 2d20kh1 or 2d20kl1.

    An exploding d20 keeps its modifier: 1d20! becomes 2d20kh1!.

    Args:
        expression: Parsed expression containing a d20 term.
        advantage_type: ADVANTAGE keeps the higher die, DISADVANTAGE the lower.

    Returns:
        Rewritten notation (unchanged notation for NORMAL).

    Raises:
        EvaluationError: NO_D20_TERM if the expression has no d20 term,
            INVALID_MODIFIER if every d20 term already rolls several dice
            or carries drop/keep.

    Examples:
        >>> from dicecore.dice.parser import parse_dice
        >>> rewrite_advantage(parse_dice("1d20+5"), AdvantageType.ADVANTAGE)
        '2d20kh1+5'
    """
    if advantage_type == AdvantageType.NORMAL:
        return expression.normalized

    terms = list(expression.terms)
    for index, term in enumerate(terms):
        if is_single_d20(term):
            direction = (
                Direction.HIGHEST
                if advantage_type == AdvantageType.ADVANTAGE
                else Direction.LOWEST
            )
            terms[index] = replace(
                term,
                count=2,
                drop_keep=DropKeep(kind=DropKeepKind.KEEP, direction=direction, amount=1),
            )
            return format_expression(terms)

    d20_terms = [term for term in terms if is_d20(term)]
    if d20_terms:
        raise EvaluationError(
            f"Cannot roll with {advantage_type.value}: d20 term "
            f"'{format_term(d20_terms[0])}' already rolls several dice or has drop/keep "
            f"in '{expression.normalized}'",
            ErrorKind.INVALID_MODIFIER,
        )

    raise EvaluationError(
        f"No d20 term to roll with {advantage_type.value} in '{expression.normalized}'",
        ErrorKind.NO_D20_TERM,
    )


def rewrite_critical(
    expression: Expression,
    multiplier: int = DEFAULT_CRITICAL_MULTIPLIER,
) -> str:
    """Multiply every dice count, leaving flat modifiers alone.

    On a critical hit the dice are doubled, not the static bonus.

    Raises:
        EvaluationError: If multiplier is less than 1.

    Examples:
        >>> from dicecore.dice.parser import parse_dice
        >>> rewrite_critical(parse_dice("2d6+4"))
        '4d6+4'
    """
    if multiplier < 1:
        raise EvaluationError(
            f"Critical multiplier must be at least 1, got {multiplier}",
            ErrorKind.INVALID_MULTIPLIER,
        )

    terms = [
        replace(term, count=term.count * multiplier) if isinstance(term, DiceTerm) else term
        for term in expression.terms
    ]
    return format_expression(terms)
