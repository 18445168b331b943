"""Bounded parse cache.

Memoizes parsed expressions by normalized string. Eviction is FIFO, not LRU:
re-parsing an evicted expression is cheap compared with rolling it.
"""

import logging
from collections import OrderedDict

from dicecore.dice.parser import (
    DEFAULT_MAX_LENGTH,
    DEFAULT_MAX_TERMS,
    normalize_expression,
    parse_normalized,
)
from dicecore.dice.types import Expression

logger = logging.getLogger(__name__)


class ParseCache:
    """FIFO-bounded map of normalized string -> Expression.

    Only successful parses are stored, so a corrected string is picked up
    on the next call without clearing anything.

    Attributes:
        max_size: Maximum number of cached expressions.
    """

    def __init__(
        self,
        max_size: int = 100,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_terms: int = DEFAULT_MAX_TERMS,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"Cache size must be at least 1, got {max_size}")
        self.max_size = max_size
        self.max_length = max_length
        self.max_terms = max_terms
        self._entries: OrderedDict[str, Expression] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, raw: str) -> bool:
        return normalize_expression(raw) in self._entries

    def get_or_parse(self, raw: str) -> Expression:
        """Return the cached expression for raw, parsing it on a miss.

        Raises:
            DiceParseError: If raw is not valid notation.
        """
        normalized = normalize_expression(raw)
        cached = self._entries.get(normalized)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        expression = parse_normalized(normalized, self.max_length, self.max_terms)
        self._entries[normalized] = expression
        if len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Parse cache full, evicted '{evicted}'")
        return expression

    def clear(self) -> None:
        """Drop every cached expression."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0
