from __future__ import annotations

from typing import List, Optional

from pygame.math import Vector2

from ...config import FoodConfig
from ..core.food import Food
from ..core.rng import DeterministicRng


def random_position(rng: DeterministicRng, window_size: tuple[float, float]) -> Vector2:
    return Vector2(rng.next_range(0.0, window_size[0]), rng.next_range(0.0, window_size[1]))


def initial_food(rng: DeterministicRng, config: FoodConfig, window_size: tuple[float, float]) -> List[Food]:
    return [
        Food(
            position=random_position(rng, window_size),
            radius=rng.next_range(*config.radius_range),
            color=config.color,
        )
        for _ in range(config.quantity)
    ]


class FoodSpawner:
    """Drops a single pellet of fixed size somewhere in the window now and then."""

    def __init__(self, rng: DeterministicRng, config: FoodConfig, window_size: tuple[float, float]):
        self._rng = rng
        self._config = config
        self._window_size = window_size

    def maybe_spawn(self, food: List[Food]) -> Optional[Food]:
        if self._rng.next_float() >= self._config.spawn_probability:
            return None
        item = Food(
            position=random_position(self._rng, self._window_size),
            radius=self._config.spawn_radius,
            color=self._config.color,
        )
        food.append(item)
        return item
