"""Dice notation parser.

Parses notation like 3d6+2, 4d6dl1, 2d20kh1, 1d6!>4-1 and the keywords
adv/advantage and dis/disadvantage into an immutable Expression.

Grammar (after normalization):
    expression := ['+' | '-'] term (('+' | '-') term)*
    term       := dice | integer
    dice       := [count] 'd' sides [('d' | 'k') ('h' | 'l') amount] ['!' [('>' | '<') target]]
"""

import re

from dicecore.dice.exceptions import DiceParseError
from dicecore.dice.types import (
    DiceTerm,
    Direction,
    DropKeep,
    DropKeepKind,
    ErrorKind,
    ExplodeCondition,
    Exploding,
    Expression,
    FlatModifier,
    Term,
)


MIN_DICE = 1
MAX_DICE = 1000
MIN_SIDES = 1
MAX_SIDES = 10000

DEFAULT_MAX_LENGTH = 1000
DEFAULT_MAX_TERMS = 100

# Keywords are substituted textually so nothing downstream special-cases them.
# Longest first: "disadvantage" contains "advantage".
KEYWORDS = {
    "disadvantage": "2d20kl1",
    "advantage": "2d20kh1",
    "dis": "2d20kl1",
    "adv": "2d20kh1",
}
KEYWORD_PATTERN = re.compile("|".join(KEYWORDS))

DICE_PATTERN = re.compile(
    r"^(?P<count>\d*)d(?P<sides>\d+)"
    r"(?:(?P<dk>[dk])(?P<hl>[hl])(?P<amount>\d+))?"
    r"(?:(?P<bang>!)(?P<cmp>[<>])?(?P<target>\d+)?)?$"
)
FLAT_PATTERN = re.compile(r"^\d+$")
OPERATOR_PATTERN = re.compile(r"([+-])")


def normalize_expression(raw: str) -> str:
    """Normalize notation for parsing and cache lookup.

    Lowercases, strips all whitespace and rewrites the advantage keywords.

    Examples:
        >>> normalize_expression(" 3D6 + 2 ")
        '3d6+2'
        >>> normalize_expression("adv+5")
        '2d20kh1+5'
    """
    if not isinstance(raw, str):
        raise DiceParseError(
            f"Dice expression must be a string, got {type(raw).__name__}",
            ErrorKind.INVALID_TOKEN,
        )
    cleaned = re.sub(r"\s+", "", raw.lower())
    return KEYWORD_PATTERN.sub(lambda m: KEYWORDS[m.group(0)], cleaned)


def parse_dice(
    raw: str,
    max_length: int = DEFAULT_MAX_LENGTH,
    max_terms: int = DEFAULT_MAX_TERMS,
) -> Expression:
    """Normalize and parse dice notation.

    Args:
        raw: Notation string (e.g., "4d6dl1", "1d20 + 5", "adv").
        max_length: Longest normalized string accepted.
        max_terms: Most terms accepted.

    Returns:
        Parsed Expression.

    Raises:
        DiceParseError: If the notation is malformed or out of range.

    Examples:
        >>> parse_dice("2d6+3").terms
        (DiceTerm(count=2, sides=6, sign=1, drop_keep=None, exploding=None), FlatModifier(value=3, sign=1))
    """
    return parse_normalized(normalize_expression(raw), max_length, max_terms)


def parse_normalized(
    normalized: str,
    max_length: int = DEFAULT_MAX_LENGTH,
    max_terms: int = DEFAULT_MAX_TERMS,
) -> Expression:
    """Parse an already-normalized string."""
    if not normalized:
        raise DiceParseError("Dice expression cannot be empty", ErrorKind.INVALID_TOKEN)
    if len(normalized) > max_length:
        raise DiceParseError(
            f"Dice expression is too long ({len(normalized)} > {max_length} characters)",
            ErrorKind.OUT_OF_RANGE,
        )

    parts = OPERATOR_PATTERN.split(normalized)
    terms: list[Term] = []
    sign = 1

    # Split keeps operators at odd indices: "3d6+2" -> ["3d6", "+", "2"]
    for index, part in enumerate(parts):
        if index % 2 == 1:
            sign = -1 if part == "-" else 1
            continue
        if not part:
            if index == 0 and len(parts) > 1:
                continue  # leading sign
            raise DiceParseError(
                f"Missing term in '{normalized}'", ErrorKind.INVALID_TOKEN
            )
        terms.append(_parse_token(part, sign))
        if len(terms) > max_terms:
            raise DiceParseError(
                f"Too many terms (more than {max_terms})", ErrorKind.OUT_OF_RANGE
            )

    return Expression(normalized=normalized, terms=tuple(terms))


def _parse_token(token: str, sign: int) -> Term:
    if FLAT_PATTERN.match(token):
        return FlatModifier(value=int(token), sign=sign)

    match = DICE_PATTERN.match(token)
    if not match:
        raise DiceParseError(f"Invalid token: '{token}'", ErrorKind.INVALID_TOKEN)

    count = int(match["count"]) if match["count"] else 1
    sides = int(match["sides"])

    if not MIN_DICE <= count <= MAX_DICE:
        raise DiceParseError(
            f"Number of dice must be between {MIN_DICE} and {MAX_DICE}, got {count}",
            ErrorKind.OUT_OF_RANGE,
        )
    if not MIN_SIDES <= sides <= MAX_SIDES:
        raise DiceParseError(
            f"Die size must be between {MIN_SIDES} and {MAX_SIDES}, got {sides}",
            ErrorKind.OUT_OF_RANGE,
        )

    drop_keep = None
    if match["dk"]:
        amount = int(match["amount"])
        if amount < 1 or amount >= count:
            raise DiceParseError(
                f"Cannot drop/keep {amount} of {count} dice in '{token}'",
                ErrorKind.INVALID_MODIFIER,
            )
        drop_keep = DropKeep(
            kind=DropKeepKind.DROP if match["dk"] == "d" else DropKeepKind.KEEP,
            direction=Direction.HIGHEST if match["hl"] == "h" else Direction.LOWEST,
            amount=amount,
        )

    exploding = None
    if match["bang"]:
        exploding = _parse_exploding(token, match["cmp"], match["target"])

    return DiceTerm(
        count=count,
        sides=sides,
        sign=sign,
        drop_keep=drop_keep,
        exploding=exploding,
    )


def _parse_exploding(token: str, comparator: str | None, target: str | None) -> Exploding:
    if comparator is None and target is None:
        return Exploding(condition=ExplodeCondition.MAX)
    if comparator is None or target is None:
        raise DiceParseError(
            f"Exploding condition needs both a comparator and a target in '{token}'",
            ErrorKind.INVALID_MODIFIER,
        )
    condition = ExplodeCondition.GREATER if comparator == ">" else ExplodeCondition.LESS
    return Exploding(condition=condition, target=int(target))


# =============================================================================
# Formatting
# =============================================================================


def format_term(term: Term) -> str:
    """Render a term as unsigned notation.

    Examples:
        >>> format_term(DiceTerm(count=4, sides=6, drop_keep=DropKeep(DropKeepKind.DROP, Direction.LOWEST, 1)))
        '4d6dl1'
    """
    if isinstance(term, FlatModifier):
        return str(term.value)

    notation = f"{term.count}d{term.sides}"
    if term.drop_keep is not None:
        notation += (
            ("d" if term.drop_keep.kind == DropKeepKind.DROP else "k")
            + ("h" if term.drop_keep.direction == Direction.HIGHEST else "l")
            + str(term.drop_keep.amount)
        )
    if term.exploding is not None:
        notation += "!"
        if term.exploding.condition == ExplodeCondition.GREATER:
            notation += f">{term.exploding.target}"
        elif term.exploding.condition == ExplodeCondition.LESS:
            notation += f"<{term.exploding.target}"
    return notation


def format_expression(terms: tuple[Term, ...] | list[Term]) -> str:
    """Render terms back into normalized notation.

    Examples:
        >>> format_expression(parse_dice("d20 + 5").terms)
        '1d20+5'
    """
    pieces = []
    for index, term in enumerate(terms):
        if term.sign < 0:
            pieces.append("-")
        elif index > 0:
            pieces.append("+")
        pieces.append(format_term(term))
    return "".join(pieces)
