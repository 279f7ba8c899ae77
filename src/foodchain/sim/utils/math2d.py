from __future__ import annotations

import math

from pygame.math import Vector2

def magnitude(vector: Vector2) -> float:
    return math.sqrt(vector.x * vector.x + vector.y * vector.y)


def normalize(vector: Vector2) -> Vector2:
    magnitude_sq = vector.x * vector.x + vector.y * vector.y
    if magnitude_sq < 1e-18:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(vector.x * inv, vector.y * inv)


def distance(first: Vector2, second: Vector2) -> float:
    return math.hypot(first.x - second.x, first.y - second.y)


def clamp_length(vector: Vector2, max_length: float) -> Vector2:
    """Scale ``vector`` down to ``max_length`` when it is longer; direction is kept."""
    if max_length <= 0:
        return Vector2()
    magnitude_sq = vector.x * vector.x + vector.y * vector.y
    if magnitude_sq <= max_length * max_length:
        return Vector2(vector)
    return normalize(vector) * max_length


def heading_from_velocity(vector: Vector2) -> float:
    return math.atan2(vector.y, vector.x)


def inverse_map_range(value: float, source: tuple[float, float], target: tuple[float, float]) -> float:
    """Map ``value`` from ``source`` onto ``target`` with the direction flipped.

    ``source.low`` maps to ``target.high`` and ``source.high`` maps to
    ``target.low``. A degenerate source range divides by zero.
    """
    return target[1] - (target[1] - target[0]) * ((value - source[0]) / (source[1] - source[0]))


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
