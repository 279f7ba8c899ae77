from __future__ import annotations

from dataclasses import dataclass

from pygame.math import Vector2


@dataclass(slots=True, eq=False)
class Food:
    position: Vector2
    radius: float
    color: tuple[float, float, float, float] = (0.2, 0.8, 0.2, 1.0)
