"""Modifier pipeline for a single dice term.

Rolls the raw dice, applies exploding, then drop/keep. Dice are tracked by
their original index so equal values are never confused.
"""

import logging

from dicecore.dice.random_source import RandomSource
from dicecore.dice.types import (
    DiceTerm,
    Direction,
    DropKeepKind,
    RawRoll,
    TermResult,
)

logger = logging.getLogger(__name__)

# Extra draws allowed per original die. A 1-sided exploding die always
# rolls its maximum, so it stops here with exactly 1 + cap in total.
DEFAULT_EXPLOSION_CAP = 100


def roll_term(
    term: DiceTerm,
    rng: RandomSource,
    explosion_cap: int = DEFAULT_EXPLOSION_CAP,
) -> TermResult:
    """Roll one dice term through the modifier pipeline.

    Args:
        term: The dice term to roll.
        rng: Source of die faces.
        explosion_cap: Maximum extra draws per exploding die.

    Returns:
        TermResult with raw, kept and dropped dice. The total is unsigned;
        the caller applies term.sign.

    Examples:
        >>> from dicecore.dice.parser import parse_dice
        >>> from dicecore.dice.random_source import SequenceRandomSource
        >>> term = parse_dice("4d6dl1").terms[0]
        >>> roll_term(term, SequenceRandomSource([2, 5, 2, 4])).total
        11
    """
    raw = [RawRoll(index=i, value=rng.next(term.sides)) for i in range(term.count)]

    if term.exploding is not None:
        exploded = [_explode(die, term, rng, explosion_cap) for die in raw]
        raw = [die for die, _ in exploded]
        capped = sum(1 for _, hit_cap in exploded if hit_cap)
        if capped:
            logger.warning(
                f"{capped} of {term.count} exploding dice in {term.count}d{term.sides} "
                f"reached the cap of {explosion_cap} extra draws"
            )

    kept, dropped = select_dice(raw, term)

    return TermResult(
        term=term,
        raw=tuple(raw),
        kept=kept,
        dropped=dropped,
        total=sum(die.total for die in kept),
    )


def _explode(
    die: RawRoll,
    term: DiceTerm,
    rng: RandomSource,
    cap: int,
) -> tuple[RawRoll, bool]:
    """Explode one die; the flag is True when the cap stopped the chain."""
    exploding = term.exploding
    chain = []
    newest = die.value
    while exploding.triggers(newest, term.sides):
        if len(chain) >= cap:
            return RawRoll(index=die.index, value=die.value, exploded_chain=tuple(chain)), True
        newest = rng.next(term.sides)
        chain.append(newest)

    return RawRoll(index=die.index, value=die.value, exploded_chain=tuple(chain)), False


def select_dice(
    dice: list[RawRoll],
    term: DiceTerm,
) -> tuple[tuple[RawRoll, ...], tuple[RawRoll, ...]]:
    """Split dice into kept and dropped per the term's drop/keep modifier.

    Both tuples preserve the original die order.
    """
    drop_keep = term.drop_keep
    if drop_keep is None:
        return tuple(dice), ()

    # Sort by total, ties broken by index so selection is deterministic.
    ordered = sorted(dice, key=lambda die: (die.total, die.index))
    if drop_keep.direction == Direction.HIGHEST:
        ordered.reverse()

    # ordered now starts at the end the modifier names
    selected = {die.index for die in ordered[: drop_keep.amount]}
    if drop_keep.kind == DropKeepKind.KEEP:
        kept_indexes = selected
    else:
        kept_indexes = {die.index for die in dice} - selected

    kept = tuple(die for die in dice if die.index in kept_indexes)
    dropped = tuple(die for die in dice if die.index not in kept_indexes)
    return kept, dropped
