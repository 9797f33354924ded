from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional

from pygame.math import Vector2

logger = logging.getLogger(__name__)

_MASK32 = 0xFFFFFFFF
_GOLDEN_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def time_based_seed(now: Optional[datetime] = None) -> int:
    """Seed from seconds-of-day multiplied by the yyyymmdd date stamp."""
    now = now or datetime.now()
    time_component = now.hour * 3600 + now.minute * 60 + now.second
    date_component = now.year * 10000 + now.month * 100 + now.day
    return (time_component * date_component) & _MASK32


class DeterministicRng:
    """Mulberry32 stream with viewport-aware position sampling.

    The state is a single 32-bit word. Each draw advances it by a fixed odd
    increment and then scrambles a copy with two multiply-xor-shift rounds, so
    the low bits of the output are as well mixed as the high ones.
    """

    def __init__(self, seed: int, width: float = 1280.0, height: float = 720.0):
        self._seed = int(seed) & _MASK32
        self._state = self._seed
        self._factor_applied = False
        self._width = float(width)
        self._height = float(height)

    @property
    def seed(self) -> int:
        return self._seed

    def set_bounds(self, width: float, height: float) -> None:
        self._width = float(width)
        self._height = float(height)

    def set_environmental_factor(self, value: float) -> bool:
        """Fold an outside measurement (e.g. a temperature) into the seed.

        Only the first usable value is folded in. Returns False, leaving the
        stream untouched, when the value is unusable or a factor was already applied.
        """
        if self._factor_applied:
            logger.warning("Ignoring environmental factor %r: a factor was already applied", value)
            return False
        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring environmental factor %r: not a number", value)
            return False
        if not math.isfinite(value):
            logger.warning("Ignoring environmental factor %r: not finite", value)
            return False
        factor = int(round(abs(value) * 100)) & _MASK32
        self._factor_applied = True
        if factor == 0:
            return True
        self._seed = _imul(self._seed, factor)
        self._state = self._seed
        return True

    def reset(self) -> None:
        self._state = self._seed

    def next_float(self) -> float:
        self._state = (self._state + _GOLDEN_INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_range(self, low: float, high: float) -> float:
        return low + (high - low) * self.next_float()

    def next_angle(self) -> float:
        return self.next_float() * 2.0 * math.pi

    def random_position(self, padding: float = 50.0) -> Vector2:
        return Vector2(
            self.next_range(padding, self._width - padding),
            self.next_range(padding, self._height - padding),
        )
