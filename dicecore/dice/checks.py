"""Ability score generation methods.

Rolled methods are plain dice expressions; fixed methods return a starting
array without rolling.
"""

from dicecore.dice.types import AbilityScoreStatistics


ABILITY_SCORE_COUNT = 6

# Method name -> expression rolled once per score
ROLLED_METHODS = {
    "4d6dl1": "4d6dl1",  # 4d6 drop lowest
    "3d6": "3d6",  # straight 3d6
    "2d6+6": "2d6+6",  # heroic
}

# Method name -> fixed starting array
FIXED_METHODS = {
    "point-buy": (8, 8, 8, 8, 8, 8),
    "standard-array": (15, 14, 13, 12, 10, 8),
}

DEFAULT_METHOD = "4d6dl1"


def available_methods() -> list[str]:
    """All method names accepted by ability score generation."""
    return [*ROLLED_METHODS, *FIXED_METHODS]


def normalize_method(method: str) -> str:
    """Lowercase and strip whitespace from a method name."""
    return "".join(method.lower().split())


def calculate_ability_modifier(ability_score: int) -> int:
    """Convert D&D ability score to modifier.

    Uses standard D&D formula: (score - 10) // 2

    Args:
        ability_score: The ability score (typically 1-20).

    Returns:
        The modifier (e.g., 10 -> 0, 14 -> +2, 8 -> -1).

    Examples:
        >>> calculate_ability_modifier(10)
        0
        >>> calculate_ability_modifier(14)
        2
        >>> calculate_ability_modifier(8)
        -1
    """
    return (ability_score - 10) // 2


def summarize_scores(scores: tuple[int, ...] | list[int]) -> AbilityScoreStatistics:
    """Summarize an ability array.

    Examples:
        >>> summarize_scores([15, 14, 13, 12, 10, 8]).total_modifier
        5
    """
    return AbilityScoreStatistics(
        minimum=min(scores),
        maximum=max(scores),
        total=sum(scores),
        total_modifier=sum(calculate_ability_modifier(s) for s in scores),
        above_ten=sum(1 for s in scores if s > 10),
        below_ten=sum(1 for s in scores if s < 10),
    )
