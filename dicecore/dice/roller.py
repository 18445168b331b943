"""Roll evaluator.

Evaluates a parsed Expression against a random source, producing the
signed total, one breakdown line per term and natural-1/20 flags.
"""

import logging

from dicecore.dice.exceptions import DiceError
from dicecore.dice.modifiers import DEFAULT_EXPLOSION_CAP, roll_term
from dicecore.dice.parser import format_term
from dicecore.dice.random_source import RandomSource
from dicecore.dice.types import (
    DiceTerm,
    Expression,
    FlatModifier,
    NaturalPolicy,
    RollOutcome,
    TermResult,
)

logger = logging.getLogger(__name__)

NATURAL_DIE = 20


def evaluate(
    expression: Expression,
    rng: RandomSource,
    explosion_cap: int = DEFAULT_EXPLOSION_CAP,
    natural_policy: NaturalPolicy = NaturalPolicy.KEPT,
) -> RollOutcome:
    """Evaluate an expression.

    Never raises for dice failures: a random source error becomes an
    outcome with error set.

    Args:
        expression: Parsed expression.
        rng: Source of die faces.
        explosion_cap: Maximum extra draws per exploding die.
        natural_policy: Which d20 dice count as natural rolls.

    Returns:
        RollOutcome with expression and normalized both set to the
        expression's normalized string; the engine fills in the caller's
        original string and timing.
    """
    total = 0
    breakdown: list[str] = []
    results: list[TermResult] = []

    try:
        for term in expression.terms:
            if isinstance(term, DiceTerm):
                result = roll_term(term, rng, explosion_cap)
                results.append(result)
                total += term.sign * result.total
                breakdown.append(describe_term(result))
            elif isinstance(term, FlatModifier):
                total += term.sign * term.value
                breakdown.append(f"{'-' if term.sign < 0 else '+'}{term.value}")
    except DiceError as e:
        logger.warning(f"Evaluation of '{expression.normalized}' failed: {e}")
        return RollOutcome.failure(expression.normalized, e.to_error())

    natural_one, natural_twenty = detect_naturals(results, natural_policy)

    return RollOutcome(
        expression=expression.normalized,
        normalized=expression.normalized,
        total=total,
        breakdown=tuple(breakdown),
        natural_one=natural_one,
        natural_twenty=natural_twenty,
        terms=tuple(results),
    )


def describe_term(result: TermResult) -> str:
    """Human-readable line for one dice term.

    Examples: "4d6dl1: 11 (dropped 2)", "-1d4: 3", "1d6!: 14 (exploded 6, 2)".
    """
    sign = "-" if result.term.sign < 0 else ""
    line = f"{sign}{format_term(result.term)}: {result.total}"
    if result.dropped:
        line += f" (dropped {', '.join(str(die.total) for die in result.dropped)})"
    chain = [value for die in result.raw for value in die.exploded_chain]
    if chain:
        line += f" (exploded {', '.join(str(value) for value in chain)})"
    return line


def detect_naturals(
    results: list[TermResult],
    policy: NaturalPolicy = NaturalPolicy.KEPT,
) -> tuple[bool, bool]:
    """Find natural 1s and 20s on d20 terms.

    KEPT only looks at dice that survived drop/keep, so the die discarded
    by advantage never counts; ANY looks at every die rolled. The natural
    face is the die's first draw, never its exploded total.

    Returns:
        (natural_one, natural_twenty)
    """
    natural_one = False
    natural_twenty = False
    for result in results:
        if result.term.sides != NATURAL_DIE:
            continue
        dice = result.kept if policy == NaturalPolicy.KEPT else result.raw
        for die in dice:
            if die.value == 1:
                natural_one = True
            elif die.value == NATURAL_DIE:
                natural_twenty = True
    return natural_one, natural_twenty
