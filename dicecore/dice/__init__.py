"""Dice expression engine.

Parses notation like 3d6+2, 4d6dl1 and 2d20kh1!, evaluates it against a
pluggable random source and records history and statistics.

Usage:
    >>> from dicecore.dice import DiceEngine
    >>> engine = DiceEngine()
    >>> outcome = engine.roll("1d20+5")
    >>> adv = engine.roll_with_advantage("1d20+5")
    >>> crit = engine.roll_critical("2d6+4")
    >>> scores = engine.roll_ability_scores("4d6dl1")
"""

# Types
from dicecore.dice.types import (
    AbilityScoreResult,
    AdvantageType,
    DiceTerm,
    DieStatistics,
    ErrorKind,
    Expression,
    FlatModifier,
    HistoryEntry,
    NaturalPolicy,
    RawRoll,
    RollError,
    RollOutcome,
    SelfTestResult,
    StatisticsSnapshot,
    TermResult,
)

# Errors
from dicecore.dice.exceptions import (
    DiceError,
    DiceParseError,
    EvaluationError,
    RandomSourceError,
)

# Parser & Cache
from dicecore.dice.parser import format_expression, normalize_expression, parse_dice
from dicecore.dice.cache import ParseCache

# Random Sources
from dicecore.dice.random_source import (
    CryptoRandomSource,
    RandomSource,
    ScaledRandomSource,
    SeededRandomSource,
    SequenceRandomSource,
    create_random_source,
)

# Evaluation
from dicecore.dice.modifiers import roll_term
from dicecore.dice.roller import evaluate

# Engine
from dicecore.dice.engine import DiceEngine

__all__ = [
    # Types
    "AbilityScoreResult",
    "AdvantageType",
    "DiceTerm",
    "DieStatistics",
    "ErrorKind",
    "Expression",
    "FlatModifier",
    "HistoryEntry",
    "NaturalPolicy",
    "RawRoll",
    "RollError",
    "RollOutcome",
    "SelfTestResult",
    "StatisticsSnapshot",
    "TermResult",
    # Errors
    "DiceError",
    "DiceParseError",
    "EvaluationError",
    "RandomSourceError",
    # Parser & Cache
    "format_expression",
    "normalize_expression",
    "parse_dice",
    "ParseCache",
    # Random Sources
    "CryptoRandomSource",
    "RandomSource",
    "ScaledRandomSource",
    "SeededRandomSource",
    "SequenceRandomSource",
    "create_random_source",
    # Evaluation
    "roll_term",
    "evaluate",
    # Engine
    "DiceEngine",
]
