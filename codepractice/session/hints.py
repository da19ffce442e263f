from __future__ import annotations

from .common import Problem

MAX_HINT_LEVEL = 2


class HintDisclosure:
    """Ordered hint reveal: brute force first, then the optimized approach.

    The level only moves forward one step at a time. Requests to skip a level
    or to re-reveal an already shown level leave the state untouched.
    """

    def __init__(self):
        self._level = 0

    @property
    def level(self) -> int:
        return self._level

    def reveal(self, target_level: int) -> bool:
        """Advance to *target_level* if it is the next level. Returns True on change."""
        if target_level != self._level + 1 or target_level > MAX_HINT_LEVEL:
            return False
        self._level = target_level
        return True

    def visible_hints(self, problem: Problem) -> list[str]:
        hints = [problem.hint_brute, problem.hint_optimized]
        return hints[:self._level]
