"""Dice engine exception definitions.

Raised internally by the parser, evaluator and random sources. The public
DiceEngine operations convert them into RollOutcome.error.
"""

from dicecore.dice.types import ErrorKind, RollError


class DiceError(Exception):
    """Base exception for dice operations.

    Attributes:
        kind: Error kind reported to callers.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def to_error(self) -> RollError:
        """Convert to the error value carried by outcomes."""
        return RollError(kind=self.kind, message=str(self))


class DiceParseError(DiceError, ValueError):
    """Error parsing dice notation."""

    kind = ErrorKind.INVALID_TOKEN


class EvaluationError(DiceError):
    """A derived operation was asked to do something impossible."""

    kind = ErrorKind.NO_D20_TERM


class RandomSourceError(DiceError):
    """The entropy source failed or produced an unusable value."""

    kind = ErrorKind.RANDOM_SOURCE
