"""History and statistics recorder.

Keeps a bounded log of successful rolls and aggregate statistics per
normalized expression. State belongs to one recorder instance; nothing
is shared between engines.
"""

import uuid
from collections import Counter, deque
from dataclasses import dataclass, field

from dicecore.dice.types import (
    DieStatistics,
    ExpressionStatistics,
    GlobalStatistics,
    HistoryEntry,
    RollOutcome,
    StatisticsSnapshot,
)


DEFAULT_HISTORY_SIZE = 1000


@dataclass
class _ExpressionCounter:
    count: int = 0
    sum: int = 0
    histogram: Counter = field(default_factory=Counter)


@dataclass
class _DieCounter:
    count: int = 0
    sum: int = 0


class RollRecorder:
    """Bounded roll history plus running statistics.

    Attributes:
        max_history: History ring-buffer capacity; oldest entries go first.
    """

    def __init__(self, max_history: int = DEFAULT_HISTORY_SIZE) -> None:
        if max_history < 1:
            raise ValueError(f"History size must be at least 1, got {max_history}")
        self.max_history = max_history
        self._history: deque[HistoryEntry] = deque(maxlen=max_history)
        self._reset_statistics()

    def _reset_statistics(self) -> None:
        self._expressions: dict[str, _ExpressionCounter] = {}
        self._dice: dict[int, _DieCounter] = {}
        self._total_rolls = 0
        self._cumulative_duration_ms = 0.0
        self._max_duration_ms = 0.0
        self._natural_twenties = 0
        self._natural_ones = 0

    @property
    def total_rolls(self) -> int:
        return self._total_rolls

    def __len__(self) -> int:
        return len(self._history)

    def record(self, outcome: RollOutcome) -> HistoryEntry | None:
        """Record a successful outcome; failed outcomes are ignored.

        Returns:
            The new history entry, or None for a failed outcome.
        """
        if outcome.error is not None:
            return None

        entry = HistoryEntry(
            expression=outcome.expression,
            total=outcome.total,
            timestamp_ms=outcome.timestamp_ms,
            duration_ms=outcome.duration_ms,
            roll_id=f"roll_{outcome.timestamp_ms}_{uuid.uuid4().hex[:8]}",
            normalized=outcome.normalized,
            breakdown=outcome.breakdown,
        )
        self._history.append(entry)

        counter = self._expressions.setdefault(outcome.normalized, _ExpressionCounter())
        counter.count += 1
        counter.sum += outcome.total
        counter.histogram[outcome.total] += 1

        # Every drawn face counts, dropped and exploded draws included
        for result in outcome.terms:
            die_counter = self._dice.setdefault(result.term.sides, _DieCounter())
            for die in result.raw:
                faces = (die.value, *die.exploded_chain)
                die_counter.count += len(faces)
                die_counter.sum += sum(faces)

        self._total_rolls += 1
        self._cumulative_duration_ms += outcome.duration_ms
        self._max_duration_ms = max(self._max_duration_ms, outcome.duration_ms)
        if outcome.natural_twenty:
            self._natural_twenties += 1
        if outcome.natural_one:
            self._natural_ones += 1
        return entry

    def get_history(self, count: int = 10) -> list[HistoryEntry]:
        """Most recent entries, oldest first."""
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def find(self, roll_id: str) -> HistoryEntry | None:
        """Look up a history entry by id; evicted or cleared entries are gone."""
        for entry in reversed(self._history):
            if entry.roll_id == roll_id:
                return entry
        return None

    def get_statistics(self) -> StatisticsSnapshot:
        """Immutable copy of the current statistics."""
        expressions = {
            key: ExpressionStatistics(
                count=c.count,
                sum=c.sum,
                average=c.sum / c.count,
                histogram=dict(sorted(c.histogram.items())),
            )
            for key, c in self._expressions.items()
        }
        dice = {
            sides: DieStatistics(
                count=c.count,
                average=c.sum / c.count,
                theoretical_average=(sides + 1) / 2,
            )
            for sides, c in sorted(self._dice.items())
        }
        average = (
            self._cumulative_duration_ms / self._total_rolls if self._total_rolls else 0.0
        )
        overall = GlobalStatistics(
            total_rolls=self._total_rolls,
            cumulative_duration_ms=self._cumulative_duration_ms,
            average_duration_ms=average,
            max_duration_ms=self._max_duration_ms,
            natural_twenties=self._natural_twenties,
            natural_ones=self._natural_ones,
        )
        return StatisticsSnapshot(expressions=expressions, dice=dice, overall=overall)

    def clear_history(self) -> None:
        """Drop the history log, keeping statistics."""
        self._history.clear()

    def reset(self) -> None:
        """Drop history and statistics."""
        self._history.clear()
        self._reset_statistics()
