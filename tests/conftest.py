"""Core test fixtures for dice engine tests."""

import pytest

from dicecore.config import Settings
from dicecore.dice.engine import DiceEngine
from dicecore.dice.random_source import SeededRandomSource, SequenceRandomSource


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def seeded_rng() -> SeededRandomSource:
    """Reproducible random source."""
    return SeededRandomSource(seed=1234)


@pytest.fixture
def engine(settings, seeded_rng) -> DiceEngine:
    """Fresh engine with a seeded random source for each test."""
    return DiceEngine(settings=settings, rng=seeded_rng)


@pytest.fixture
def fixed_engine(settings):
    """Factory for an engine whose dice show a fixed sequence of faces."""

    def _make(values, **overrides) -> DiceEngine:
        engine_settings = settings.model_copy(update=overrides) if overrides else settings
        return DiceEngine(settings=engine_settings, rng=SequenceRandomSource(values))

    return _make
