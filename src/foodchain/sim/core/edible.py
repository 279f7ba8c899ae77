from __future__ import annotations

from typing import Protocol, runtime_checkable

from pygame.math import Vector2


@runtime_checkable
class Edible(Protocol):
    """Anything a fish can eat: food pellets and agents of a prey tier."""

    @property
    def position(self) -> Vector2: ...

    @property
    def radius(self) -> float: ...
