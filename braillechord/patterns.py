"""
Braille cell patterns and pattern lookup.
"""

import logging
from typing import AbstractSet, FrozenSet, Mapping, Optional

from .zones import DOT_COUNT

log = logging.getLogger(__name__)

PATTERN_LENGTH = DOT_COUNT


def pattern_for_dots(dots: AbstractSet[int]) -> str:
    """
    Build the 6-character pattern for a set of dots.

    Position i is '1' when dot i + 1 is in the set. Dots outside 1-6
    are ignored.
    """
    return ''.join('1' if dot in dots else '0' for dot in range(1, PATTERN_LENGTH + 1))


def dots_for_pattern(pattern: str) -> FrozenSet[int]:
    """Inverse of pattern_for_dots."""
    if len(pattern) != PATTERN_LENGTH or set(pattern) - {'0', '1'}:
        raise ValueError(f"Not a Braille pattern: {pattern!r}")
    return frozenset(i + 1 for i, bit in enumerate(pattern) if bit == '1')


class PatternResolver:
    """Looks up the character for a finished chord."""

    def __init__(self, table: Mapping[str, str]):
        self._table = table

    @property
    def table(self) -> Mapping[str, str]:
        return self._table

    def resolve(self, dots: AbstractSet[int]) -> Optional[str]:
        """Return the mapped character, or None for an empty or unmapped chord."""
        if not dots:
            return None

        pattern = pattern_for_dots(dots)
        char = self._table.get(pattern)
        if char is None:
            log.debug(f"No mapping for pattern {pattern}")
        return char
