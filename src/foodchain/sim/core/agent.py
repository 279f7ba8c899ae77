from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from pygame.math import Vector2

from ..utils.math2d import clamp_length, heading_from_velocity, normalize

# Half the width of the fish sprite at scale 1.
BODY_RADIUS = 12.0
# Health left below this after decay is treated as zero.
HEALTH_EPSILON = 1e-9


class Dna(NamedTuple):
    prey_attraction: float
    predator_repulsion: float
    prey_perception: float
    predator_perception: float


@dataclass(slots=True, eq=False)
class Agent:
    """A steering fish.

    Forces are accumulated into ``acceleration`` during a frame and
    integrated by :meth:`update`, which also clears the accumulator.
    """

    id: int
    tier: int
    position: Vector2
    scale: float
    max_speed: float
    max_steering_force: float
    dna: Dna
    color: tuple[float, float, float, float] = (0.0, 1.0, 0.0, 1.0)
    velocity: Vector2 = field(default_factory=Vector2)
    acceleration: Vector2 = field(default_factory=Vector2)
    heading: float = 0.0
    health: float = 1.0
    generation: int = 0

    @property
    def alive(self) -> bool:
        return self.health > 0.0

    @property
    def radius(self) -> float:
        return self.scale * BODY_RADIUS

    def seek(self, target: Vector2) -> Vector2:
        desired = normalize(target - self.position) * self.max_speed
        return clamp_length(desired - self.velocity, self.max_steering_force)

    def apply_force(self, force: Vector2) -> None:
        self.acceleration += force

    def heal(self, amount: float) -> None:
        self.health = min(1.0, self.health + amount)

    def update(self, health_decay: float) -> None:
        if not self.alive:
            return
        self.velocity = clamp_length(self.velocity + self.acceleration, self.max_speed)
        self.heading = heading_from_velocity(self.velocity)
        self.position += self.velocity
        self.acceleration = Vector2()
        health = self.health - health_decay
        self.health = 0.0 if health < HEALTH_EPSILON else health
