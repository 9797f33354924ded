from __future__ import annotations

import math

from pygame.math import Vector2

STAT_MIN = 0.0
STAT_MAX = 100.0


def _distance_sq(a: Vector2, b: Vector2) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def _heading(angle: float, speed: float) -> Vector2:
    return Vector2(math.cos(angle) * speed, math.sin(angle) * speed)


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _clamp_stat(value: float) -> float:
    return _clamp_value(value, STAT_MIN, STAT_MAX)
