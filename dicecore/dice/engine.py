"""Dice engine facade.

DiceEngine is the single entry point the rest of an application uses:
every public method returns a result object and never raises. Failures are
reported through the result's error field.

Each engine owns its parse cache, random source, history and statistics,
so independent engines never interfere. An engine is not thread-safe;
use one per thread or serialize access.

Usage:
    >>> engine = DiceEngine()
    >>> outcome = engine.roll("4d6dl1")
    >>> 3 <= outcome.total <= 18
    True
"""

import logging
import statistics
import time
from collections.abc import Callable, Iterable
from dataclasses import replace

from dicecore import __version__
from dicecore.config import Settings, get_settings
from dicecore.dice.cache import ParseCache
from dicecore.dice.checks import (
    ABILITY_SCORE_COUNT,
    DEFAULT_METHOD,
    FIXED_METHODS,
    ROLLED_METHODS,
    available_methods,
    normalize_method,
    summarize_scores,
)
from dicecore.dice.combat import (
    DEFAULT_CRITICAL_MULTIPLIER,
    rewrite_advantage,
    rewrite_critical,
)
from dicecore.dice.exceptions import DiceError
from dicecore.dice.random_source import RandomSource, create_random_source
from dicecore.dice.recorder import RollRecorder
from dicecore.dice.roller import evaluate
from dicecore.dice.types import (
    AbilityScoreResult,
    AdvantageType,
    AnalysisResult,
    EngineStatus,
    ErrorKind,
    Expression,
    HistoryEntry,
    NaturalPolicy,
    RollError,
    RollOutcome,
    SelfTestResult,
    StatisticsSnapshot,
    ValidationResult,
)

logger = logging.getLogger(__name__)

Rewrite = Callable[[Expression], str]

# (expression, expected minimum, expected maximum); None bounds expect an error
SELF_TEST_CASES: list[tuple[str, int | None, int | None]] = [
    ("1d20", 1, 20),
    ("3d6", 3, 18),
    ("4d6dl1", 3, 18),
    ("2d20kh1", 1, 20),
    ("2d20kl1", 1, 20),
    ("1d6+5", 6, 11),
    ("2d8-1", 1, 15),
    ("d100", 1, 100),
    ("adv+2", 3, 22),
    ("10", 10, 10),
    ("3x6", None, None),
]
SELF_TEST_TRIALS = 25


class DiceEngine:
    """Parses, evaluates and records dice rolls.

    Args:
        settings: Engine settings; defaults to get_settings().
        rng: Random source; defaults to the one selected by settings.rng.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.rng = rng or create_random_source(self.settings.rng, self.settings.rng_seed)
        self.natural_policy = NaturalPolicy(self.settings.natural_policy)
        self.cache = ParseCache(
            max_size=self.settings.cache_size,
            max_length=self.settings.max_expression_length,
            max_terms=self.settings.max_terms,
        )
        self.recorder = RollRecorder(max_history=self.settings.history_size)

    # =========================================================================
    # Rolling
    # =========================================================================

    def roll(self, expression: str) -> RollOutcome:
        """Parse (cache-checked), evaluate and record an expression.

        Examples:
            >>> DiceEngine().roll("3x6").error.kind
            <ErrorKind.INVALID_TOKEN: 'invalid_token'>
        """
        return self._roll(expression)

    def roll_batch(self, expressions: Iterable[str]) -> list[RollOutcome]:
        """Roll several expressions; one failure never aborts the rest.

        Logs a warning when the batch exceeds settings.batch_budget_ms.
        """
        start = time.perf_counter()
        outcomes = [self.roll(expression) for expression in expressions]
        elapsed_ms = (time.perf_counter() - start) * 1000
        if elapsed_ms > self.settings.batch_budget_ms:
            logger.warning(
                f"Batch of {len(outcomes)} rolls took {elapsed_ms:.2f}ms, "
                f"exceeding the {self.settings.batch_budget_ms}ms budget"
            )
        return outcomes

    def roll_with_advantage(self, expression: str) -> RollOutcome:
        """Roll with the first single d20 replaced by 2d20kh1."""
        return self._roll(
            expression,
            rewrite=lambda parsed: rewrite_advantage(parsed, AdvantageType.ADVANTAGE),
        )

    def roll_with_disadvantage(self, expression: str) -> RollOutcome:
        """Roll with the first single d20 replaced by 2d20kl1."""
        return self._roll(
            expression,
            rewrite=lambda parsed: rewrite_advantage(parsed, AdvantageType.DISADVANTAGE),
        )

    def roll_critical(
        self,
        expression: str,
        multiplier: int = DEFAULT_CRITICAL_MULTIPLIER,
    ) -> RollOutcome:
        """Roll critical damage: dice counts multiplied, flat bonuses unchanged.

        The outcome keeps the original expression; outcome.normalized shows
        what was actually rolled (e.g. "2d6+4" -> "4d6+4").
        """
        return self._roll(
            expression,
            rewrite=lambda parsed: rewrite_critical(parsed, multiplier),
        )

    def roll_with_reroll(self, expression: str, reroll_on: int) -> RollOutcome:
        """Re-evaluate the whole expression while any die shows reroll_on.

        Only the natural face of each original die is checked. Attempts are
        capped at settings.max_reroll_attempts; when the cap is reached the
        last evaluation is returned. Only the returned outcome is recorded.
        """
        cap = self.settings.max_reroll_attempts
        total_duration = 0.0
        for attempt in range(1, cap + 1):
            outcome = self._roll(expression, record=False)
            total_duration += outcome.duration_ms
            if outcome.error is not None or not _shows_face(outcome, reroll_on):
                break
        else:
            logger.warning(
                f"Reroll on {reroll_on} for '{expression}' hit the cap of "
                f"{cap} attempts; keeping the last result"
            )

        outcome = replace(outcome, attempts=attempt, duration_ms=total_duration)
        return self._record(outcome)

    def roll_ability_scores(self, method: str = DEFAULT_METHOD) -> AbilityScoreResult:
        """Generate six ability scores.

        Rolled methods ("4d6dl1", "3d6", "2d6+6") roll once per score;
        "point-buy" and "standard-array" return a fixed starting array.
        """
        try:
            key = normalize_method(method)
        except AttributeError:
            key = None

        if key in FIXED_METHODS:
            scores = FIXED_METHODS[key]
        elif key in ROLLED_METHODS:
            outcomes = [self.roll(ROLLED_METHODS[key]) for _ in range(ABILITY_SCORE_COUNT)]
            failed = next((o for o in outcomes if o.error is not None), None)
            if failed is not None:
                return AbilityScoreResult(method=method, error=failed.error)
            scores = tuple(o.total for o in outcomes)
        else:
            return AbilityScoreResult(
                method=method,
                error=RollError(
                    kind=ErrorKind.UNKNOWN_METHOD,
                    message=(
                        f"Unknown ability score method '{method}'. "
                        f"Valid: {', '.join(available_methods())}"
                    ),
                ),
            )

        return AbilityScoreResult(
            method=method,
            scores=tuple(scores),
            statistics=summarize_scores(scores),
        )

    def _roll(
        self,
        expression: str,
        rewrite: Rewrite | None = None,
        record: bool = True,
    ) -> RollOutcome:
        timestamp_ms = int(time.time() * 1000)
        start = time.perf_counter()

        try:
            parsed = self.cache.get_or_parse(expression)
            if rewrite is not None:
                parsed = self.cache.get_or_parse(rewrite(parsed))
            outcome = evaluate(
                parsed,
                self.rng,
                explosion_cap=self.settings.explosion_cap,
                natural_policy=self.natural_policy,
            )
        except DiceError as e:
            outcome = RollOutcome.failure(str(expression), e.to_error())
        except Exception as e:
            logger.exception(f"Unexpected error rolling '{expression}'")
            outcome = RollOutcome.failure(
                str(expression),
                RollError(kind=ErrorKind.INTERNAL, message=str(e)),
            )

        outcome = replace(
            outcome,
            expression=str(expression),
            timestamp_ms=timestamp_ms,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        self._log_outcome(outcome)

        if record:
            outcome = self._record(outcome)
        return outcome

    def _record(self, outcome: RollOutcome) -> RollOutcome:
        entry = self.recorder.record(outcome)
        if entry is None:
            return outcome
        return replace(outcome, roll_id=entry.roll_id)

    def _log_outcome(self, outcome: RollOutcome) -> None:
        if outcome.error is not None:
            logger.info(
                f"Roll '{outcome.expression}' failed "
                f"({outcome.error.kind.value}): {outcome.error.message}"
            )
            return
        level = logging.INFO if self.settings.debug else logging.DEBUG
        logger.log(
            level,
            f"Rolled '{outcome.expression}' -> {outcome.total} "
            f"[{'; '.join(outcome.breakdown)}]",
        )

    # =========================================================================
    # Inspection
    # =========================================================================

    def validate_expression(self, expression: str) -> ValidationResult:
        """Check notation without rolling or recording it."""
        try:
            parsed = self.cache.get_or_parse(expression)
        except DiceError as e:
            return ValidationResult(expression=str(expression), valid=False, error=e.to_error())
        return ValidationResult(
            expression=expression,
            valid=True,
            normalized=parsed.normalized,
            term_count=len(parsed.terms),
        )

    def analyze(self, expression: str, iterations: int = 1000) -> AnalysisResult:
        """Roll an expression repeatedly and summarize the sample.

        Analysis rolls are not recorded in history or statistics.
        """
        if iterations < 1:
            return AnalysisResult(
                expression=expression,
                iterations=iterations,
                error=RollError(
                    kind=ErrorKind.OUT_OF_RANGE,
                    message=f"Iterations must be at least 1, got {iterations}",
                ),
            )

        totals = []
        for _ in range(iterations):
            outcome = self._roll(expression, record=False)
            if outcome.error is not None:
                return AnalysisResult(
                    expression=str(expression),
                    iterations=iterations,
                    error=outcome.error,
                )
            totals.append(outcome.total)

        return AnalysisResult(
            expression=expression,
            iterations=iterations,
            mean=round(statistics.fmean(totals), 2),
            median=statistics.median(totals),
            minimum=min(totals),
            maximum=max(totals),
        )

    def self_test(self) -> list[SelfTestResult]:
        """Smoke-test a fixed battery of expressions against expected ranges.

        Not a correctness proof: each case is rolled a few times and every
        total must land inside its range. Nothing is recorded.
        """
        # Exploding bound depends on the configured cap
        cases = [*SELF_TEST_CASES, ("1d6!", 1, 6 * (self.settings.explosion_cap + 1))]

        results = []
        for expression, expected_min, expected_max in cases:
            results.append(self._self_test_case(expression, expected_min, expected_max))

        failed = [r.expression for r in results if not r.passed]
        if failed:
            logger.warning(f"Self-test failed for: {', '.join(failed)}")
        return results

    def _self_test_case(
        self,
        expression: str,
        expected_min: int | None,
        expected_max: int | None,
    ) -> SelfTestResult:
        if expected_min is None or expected_max is None:
            outcome = self._roll(expression, record=False)
            passed = outcome.error is not None and outcome.total == 0
            return SelfTestResult(
                expression=expression,
                expected_min=0,
                expected_max=0,
                passed=passed,
                message="rejected as expected" if passed else "malformed input was accepted",
            )

        totals = []
        for _ in range(SELF_TEST_TRIALS):
            outcome = self._roll(expression, record=False)
            if outcome.error is not None:
                return SelfTestResult(
                    expression=expression,
                    expected_min=expected_min,
                    expected_max=expected_max,
                    passed=False,
                    message=outcome.error.message,
                )
            totals.append(outcome.total)

        observed_min, observed_max = min(totals), max(totals)
        passed = expected_min <= observed_min and observed_max <= expected_max
        return SelfTestResult(
            expression=expression,
            expected_min=expected_min,
            expected_max=expected_max,
            passed=passed,
            observed_min=observed_min,
            observed_max=observed_max,
            message="ok" if passed else f"observed {observed_min}-{observed_max}",
        )

    def get_statistics(self) -> StatisticsSnapshot:
        """Serializable snapshot of per-expression and global statistics."""
        return self.recorder.get_statistics()

    def get_history(self, count: int = 10) -> list[HistoryEntry]:
        """The most recent successful rolls, oldest first."""
        return self.recorder.get_history(count)

    def replay_roll(self, roll_id: str) -> HistoryEntry | None:
        """Return a recorded roll by its id without rolling again.

        Returns None when the id is unknown or the entry has left the
        history (evicted, cleared or reset).
        """
        entry = self.recorder.find(roll_id)
        if entry is None:
            logger.warning(f"Roll {roll_id} not found in history")
            return None
        logger.debug(f"Replaying roll {roll_id}: {entry.expression} -> {entry.total}")
        return entry

    def get_status(self) -> EngineStatus:
        return EngineStatus(
            version=__version__,
            random_source=self.rng.name,
            history_size=len(self.recorder),
            max_history_size=self.recorder.max_history,
            cache_size=len(self.cache),
            total_rolls=self.recorder.total_rolls,
        )

    # =========================================================================
    # Reset
    # =========================================================================

    def clear_history(self) -> None:
        """Clear the history log; statistics are kept."""
        self.recorder.clear_history()
        logger.info("Roll history cleared")

    def reset(self) -> None:
        """Clear history, statistics and the parse cache."""
        self.recorder.reset()
        self.cache.clear()
        logger.info("Dice engine reset")


def _shows_face(outcome: RollOutcome, face: int) -> bool:
    return any(die.value == face for result in outcome.terms for die in result.raw)
