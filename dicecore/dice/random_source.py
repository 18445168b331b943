"""Random sources for dice rolling.

Every source yields integers in [1, max_inclusive] by scaling a uniform
fraction in [0, 1) drawn from 32 random bits. Scaling instead of taking a
modulo keeps non-power-of-two die sizes unbiased up to 2**-32.

Sources are passed to the evaluator explicitly, so tests can inject a
SeededRandomSource or a SequenceRandomSource without patching anything.
"""

import logging
import os
import random
import secrets
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Literal, Protocol, runtime_checkable

from dicecore.dice.exceptions import RandomSourceError

logger = logging.getLogger(__name__)

RandomSourceKind = Literal["auto", "crypto", "pseudo"]

_SCALE = 0x100000000  # 2**32

_fallback_warned = False


@runtime_checkable
class RandomSource(Protocol):
    """Protocol for sources of die faces.

    Anything with a name and a next(max_inclusive) method can drive the
    evaluator.
    """

    name: str

    def next(self, max_inclusive: int) -> int:
        """Draw an integer in [1, max_inclusive]."""
        ...


class ScaledRandomSource(ABC):
    """Base class for sources that scale a uniform fraction into a face.

    Subclasses implement random() returning a float in [0, 1).
    """

    name = "scaled"

    @abstractmethod
    def random(self) -> float:
        """Uniform fraction in [0, 1)."""

    def next(self, max_inclusive: int) -> int:
        """Draw an integer in [1, max_inclusive].

        Raises:
            RandomSourceError: If max_inclusive < 1 or the source misbehaves.
        """
        if max_inclusive < 1:
            raise RandomSourceError(f"Cannot draw from an empty range [1, {max_inclusive}]")
        fraction = self.random()
        if not 0.0 <= fraction < 1.0:
            raise RandomSourceError(f"{self.name} source returned {fraction}, expected [0, 1)")
        return int(fraction * max_inclusive) + 1


class CryptoRandomSource(ScaledRandomSource):
    """Operating-system CSPRNG via the secrets module."""

    name = "crypto"

    def random(self) -> float:
        try:
            return secrets.randbits(32) / _SCALE
        except (OSError, NotImplementedError) as e:
            raise RandomSourceError(f"Entropy source failed: {e}") from e


class SeededRandomSource(ScaledRandomSource):
    """Deterministic Mersenne Twister source.

    Used as the fallback when no CSPRNG is available, and in tests.
    Results are reproducible for a given seed and NOT cryptographically
    unpredictable.
    """

    name = "pseudo"

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.getrandbits(32) / _SCALE


class SequenceRandomSource:
    """Returns a fixed sequence of faces, for tests.

    Args:
        values: Faces to return in order.
        cycle: Restart from the beginning when exhausted.

    Examples:
        >>> source = SequenceRandomSource([6, 1])
        >>> source.next(6), source.next(6)
        (6, 1)
    """

    name = "sequence"

    def __init__(self, values: Iterable[int], cycle: bool = False) -> None:
        self.values = list(values)
        self.cycle = cycle
        self._position = 0

    @property
    def draws(self) -> int:
        """Number of values drawn so far."""
        return self._position

    def next(self, max_inclusive: int) -> int:
        if self._position >= len(self.values):
            if not self.cycle or not self.values:
                raise RandomSourceError("Fixed random sequence exhausted")
        value = self.values[self._position % len(self.values)]
        self._position += 1
        if not 1 <= value <= max_inclusive:
            raise RandomSourceError(
                f"Fixed value {value} outside die range [1, {max_inclusive}]"
            )
        return value


def crypto_available() -> bool:
    """Check whether the platform CSPRNG can be read."""
    try:
        os.urandom(4)
    except NotImplementedError:
        return False
    return True


def create_random_source(
    kind: RandomSourceKind = "auto",
    seed: int | None = None,
) -> RandomSource:
    """Select a random source.

    "auto" prefers the platform CSPRNG and falls back to a seeded
    Mersenne Twister, logging a warning the first time that happens.

    Raises:
        RandomSourceError: If "crypto" is requested but unavailable.
    """
    global _fallback_warned

    if kind == "pseudo":
        return SeededRandomSource(seed)

    if crypto_available():
        return CryptoRandomSource()

    if kind == "crypto":
        raise RandomSourceError("Cryptographic random source is not available")

    if not _fallback_warned:
        logger.warning(
            "No cryptographic random source available; falling back to a "
            "pseudo-random generator. Rolls are not cryptographically unpredictable."
        )
        _fallback_warned = True
    return SeededRandomSource(seed)
