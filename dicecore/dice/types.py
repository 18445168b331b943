"""Dice engine type definitions.

Immutable dataclasses for parsed expressions, per-die rolls and roll outcomes,
plus pydantic models for the serializable statistics snapshot.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Kind of failure reported in a RollOutcome."""

    INVALID_TOKEN = "invalid_token"
    OUT_OF_RANGE = "out_of_range"
    INVALID_MODIFIER = "invalid_modifier"
    NO_D20_TERM = "no_d20_term"
    INVALID_MULTIPLIER = "invalid_multiplier"
    UNKNOWN_METHOD = "unknown_method"
    RANDOM_SOURCE = "random_source"
    INTERNAL = "internal"


class DropKeepKind(str, Enum):
    """Whether a drop/keep modifier discards or retains dice."""

    DROP = "drop"
    KEEP = "keep"


class Direction(str, Enum):
    """End of the sorted dice a drop/keep modifier selects from."""

    HIGHEST = "highest"
    LOWEST = "lowest"


class ExplodeCondition(str, Enum):
    """Trigger condition for exploding dice.

    - MAX: die shows its maximum face
    - GREATER: die shows more than the target
    - LESS: die shows less than the target
    """

    MAX = "max"
    GREATER = "greater"
    LESS = "less"


class AdvantageType(str, Enum):
    """Type of advantage for a roll."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


class NaturalPolicy(str, Enum):
    """Which d20 dice count for natural-1 / natural-20 detection."""

    KEPT = "kept"  # only dice surviving drop/keep
    ANY = "any"  # any die that was rolled


@dataclass(frozen=True)
class DropKeep:
    """A drop/keep modifier like dl1 or kh1."""

    kind: DropKeepKind
    direction: Direction
    amount: int


@dataclass(frozen=True)
class Exploding:
    """An exploding-dice modifier like ! or !>5."""

    condition: ExplodeCondition = ExplodeCondition.MAX
    target: int | None = None

    def triggers(self, value: int, sides: int) -> bool:
        """Check whether a drawn value causes another draw."""
        if self.condition == ExplodeCondition.MAX:
            return value == sides
        if self.condition == ExplodeCondition.GREATER:
            return value > self.target
        return value < self.target


@dataclass(frozen=True)
class DiceTerm:
    """A dice term like 4d6dl1 or -1d4.

    Attributes:
        count: Number of dice to roll (1-1000).
        sides: Faces on each die (1-10000).
        sign: +1 or -1.
        drop_keep: Optional drop/keep modifier.
        exploding: Optional exploding-dice modifier.
    """

    count: int
    sides: int
    sign: int = 1
    drop_keep: DropKeep | None = None
    exploding: Exploding | None = None


@dataclass(frozen=True)
class FlatModifier:
    """A flat integer term like +5 or -2."""

    value: int
    sign: int = 1


Term = DiceTerm | FlatModifier


@dataclass(frozen=True)
class Expression:
    """A parsed dice expression.

    Attributes:
        normalized: The normalized source string the terms came from.
        terms: Ordered signed terms.
    """

    normalized: str
    terms: tuple[Term, ...]

    @property
    def dice_terms(self) -> tuple[DiceTerm, ...]:
        """Only the dice terms, in order."""
        return tuple(t for t in self.terms if isinstance(t, DiceTerm))


@dataclass(frozen=True)
class RawRoll:
    """One original die.

    Attributes:
        index: Position of the die within its term.
        value: The natural face rolled.
        exploded_chain: Extra draws added by exploding.
    """

    index: int
    value: int
    exploded_chain: tuple[int, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        """Natural face plus every exploded draw."""
        return self.value + sum(self.exploded_chain)


@dataclass(frozen=True)
class TermResult:
    """Result of rolling one dice term, before its sign is applied."""

    term: DiceTerm
    raw: tuple[RawRoll, ...]
    kept: tuple[RawRoll, ...]
    dropped: tuple[RawRoll, ...]
    total: int


@dataclass(frozen=True)
class RollError:
    """Failure carried by an outcome instead of a raised exception."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class RollOutcome:
    """Result of rolling an expression through the engine.

    Attributes:
        expression: The caller's original expression string.
        normalized: The normalized string actually evaluated (after rewrites).
        total: Grand total (0 when error is set).
        breakdown: One human-readable line per term.
        natural_one: A d20 showed a natural 1.
        natural_twenty: A d20 showed a natural 20.
        error: Set when the roll failed.
        timestamp_ms: Wall-clock time the roll started, in epoch milliseconds.
        duration_ms: Time spent evaluating.
        terms: Per-dice-term results.
        attempts: Evaluations made (more than 1 only for reroll-on-value).
        roll_id: History id, set once the outcome is recorded.
    """

    expression: str
    normalized: str = ""
    total: int = 0
    breakdown: tuple[str, ...] = field(default_factory=tuple)
    natural_one: bool = False
    natural_twenty: bool = False
    error: RollError | None = None
    timestamp_ms: int = 0
    duration_ms: float = 0.0
    terms: tuple[TermResult, ...] = field(default_factory=tuple)
    attempts: int = 1
    roll_id: str = ""

    @property
    def ok(self) -> bool:
        """True when the roll succeeded."""
        return self.error is None

    @classmethod
    def failure(
        cls,
        expression: str,
        error: RollError,
        timestamp_ms: int = 0,
        duration_ms: float = 0.0,
    ) -> "RollOutcome":
        """Build an error outcome: zero total, no breakdown."""
        return cls(
            expression=expression,
            error=error,
            timestamp_ms=timestamp_ms,
            duration_ms=duration_ms,
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One successful roll in the history log."""

    expression: str
    total: int
    timestamp_ms: int
    duration_ms: float
    roll_id: str = ""
    normalized: str = ""
    breakdown: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AbilityScoreStatistics:
    """Summary of a six-score ability array."""

    minimum: int
    maximum: int
    total: int
    total_modifier: int
    above_ten: int
    below_ten: int


@dataclass(frozen=True)
class AbilityScoreResult:
    """Result of generating an ability-score array."""

    method: str
    scores: tuple[int, ...] = field(default_factory=tuple)
    statistics: AbilityScoreStatistics | None = None
    error: RollError | None = None


@dataclass(frozen=True)
class SelfTestResult:
    """Outcome of one self-test case."""

    expression: str
    expected_min: int
    expected_max: int
    passed: bool
    observed_min: int | None = None
    observed_max: int | None = None
    message: str = ""


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating an expression without rolling it."""

    expression: str
    valid: bool
    normalized: str = ""
    term_count: int = 0
    error: RollError | None = None


@dataclass(frozen=True)
class AnalysisResult:
    """Sample statistics from rolling an expression many times."""

    expression: str
    iterations: int
    mean: float = 0.0
    median: float = 0.0
    minimum: int = 0
    maximum: int = 0
    error: RollError | None = None


@dataclass(frozen=True)
class EngineStatus:
    """Engine health summary."""

    version: str
    random_source: str
    history_size: int
    max_history_size: int
    cache_size: int
    total_rolls: int


# =============================================================================
# Statistics Snapshot (serializable)
# =============================================================================


class ExpressionStatistics(BaseModel):
    """Aggregate results for one normalized expression."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    sum: int = 0
    average: float = 0.0
    histogram: dict[int, int] = Field(
        default_factory=dict,
        description="Total value -> number of times it was rolled",
    )


class DieStatistics(BaseModel):
    """Faces drawn for one die size, against the fair-die expectation."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    average: float = 0.0
    theoretical_average: float = Field(
        default=0.0,
        description="(sides + 1) / 2 for a fair die",
    )


class GlobalStatistics(BaseModel):
    """Engine-wide roll and timing counters."""

    model_config = ConfigDict(frozen=True)

    total_rolls: int = 0
    cumulative_duration_ms: float = 0.0
    average_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    natural_twenties: int = 0
    natural_ones: int = 0


class StatisticsSnapshot(BaseModel):
    """Point-in-time copy of the recorder's statistics."""

    model_config = ConfigDict(frozen=True)

    expressions: dict[str, ExpressionStatistics] = Field(default_factory=dict)
    dice: dict[int, DieStatistics] = Field(
        default_factory=dict,
        description="Die size -> every face drawn for that size",
    )
    overall: GlobalStatistics = Field(default_factory=GlobalStatistics)
